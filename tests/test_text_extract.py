# tests/test_text_extract.py
import pandas as pd
import pytest
import requests

from notedraw_app.services.export import rows_to_csv
from notedraw_app.services.text_extract import FetchError, decode_upload, fetch_url_text, html_to_text


def test_html_to_text_strips_markup():
    raw = """<html><head><style>p{color:red}</style><script>alert(1)</script></head>
    <body><!-- nav --><h1>Title</h1><p>First &amp; second</p><ul><li>one</li><li>two</li></ul></body></html>"""
    text = html_to_text(raw)
    assert "alert" not in text and "color" not in text and "nav" not in text
    assert text.splitlines() == ["Title", "First & second", "one", "two"]


def test_html_to_text_handles_uppercase_and_void_tags():
    raw = '<DIV>Line one<BR/>Line two</DIV><SCRIPT type="text/javascript">var p = "<p>x</p>";</SCRIPT><p>caf&eacute;</p>'
    assert html_to_text(raw).splitlines() == ["Line one", "Line two", "café"]


def test_decode_upload_encodings():
    assert decode_upload("\ufeffhello".encode("utf-8")) == "hello"
    assert decode_upload("睡眠".encode("gb18030")) == "睡眠"


def test_fetch_truncates_to_max_length(monkeypatch, fake_response):
    monkeypatch.setattr(requests, "get", lambda *a, **k: fake_response(200, text="<p>" + "a" * 50 + "</p>"))
    assert fetch_url_text("https://x.test", max_length=20, min_length=5) == "a" * 20


@pytest.mark.parametrize("resp_kwargs,needle", [
    ({"status_code": 404}, "404"),
    ({"status_code": 200, "text": "%PDF", "headers": {"Content-Type": "application/pdf"}}, "text or HTML"),
    ({"status_code": 200, "text": "<p>hi</p>"}, "too short"),
])
def test_fetch_errors(monkeypatch, fake_response, resp_kwargs, needle):
    monkeypatch.setattr(requests, "get", lambda *a, **k: fake_response(**resp_kwargs))
    with pytest.raises(FetchError, match=needle):
        fetch_url_text("http://x.test", max_length=100, min_length=10)


def test_fetch_network_error(monkeypatch):
    def _raise(*a, **k):
        raise requests.ConnectionError("refused")
    monkeypatch.setattr(requests, "get", _raise)
    with pytest.raises(FetchError, match="Failed to fetch URL"):
        fetch_url_text("https://x.test", max_length=100, min_length=1)


def test_rows_to_csv_keeps_column_order(tmp_path):
    data = rows_to_csv([{"b": 2, "a": 1, "extra": "x"}], ["a", "b"])
    assert data.startswith(b"\xef\xbb\xbf")
    path = tmp_path / "out.csv"
    path.write_bytes(data)
    df = pd.read_csv(path, encoding="utf-8-sig")
    assert list(df.columns) == ["a", "b"]
    assert df.iloc[0].tolist() == [1, 2]
