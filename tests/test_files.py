from asset_uploader.files import (CONTENT_TYPE_BINARY, CONTENT_TYPE_CSS,
                                  CONTENT_TYPE_JS, CONTENT_TYPE_JSON,
                                  ContentKind, classify, upload_headers)


def test_classify_gzipped_javascript():
    result = classify("js/app.js.gz")
    assert result.kind is ContentKind.JAVASCRIPT
    assert result.content_type == CONTENT_TYPE_JS
    assert result.is_gzipped is True


def test_classify_css():
    result = classify("css/app.css")
    assert result.kind is ContentKind.CSS
    assert result.content_type == CONTENT_TYPE_CSS
    assert result.is_gzipped is False


def test_classify_sourcemaps_as_json():
    for name in ("source.css.map", "js/app.js.map"):
        result = classify(name)
        assert result.kind is ContentKind.JSON
        assert result.content_type == CONTENT_TYPE_JSON
        assert result.is_gzipped is False


def test_classify_falls_back_to_mime_table():
    result = classify("img/logo.png")
    assert result.kind is ContentKind.OTHER
    assert result.content_type == "image/png"


def test_classify_unknown_is_binary():
    result = classify("fonts/icons.zzunknown")
    assert result.kind is ContentKind.BINARY
    assert result.content_type == CONTENT_TYPE_BINARY


def test_upload_headers_for_plain_file():
    headers = upload_headers("assets/img/logo.png")
    assert headers == {"ACL": "public-read", "ContentType": "image/png"}


def test_upload_headers_for_gzip_file():
    headers = upload_headers("assets/js/app.js.gz")
    assert headers["ContentEncoding"] == "gzip"
    assert headers["CacheControl"] == "max-age=1314000"
    assert headers["ContentType"] == CONTENT_TYPE_JS


def test_custom_headers_never_override_content_type():
    headers = upload_headers(
        "assets/css/app.css",
        {"ContentType": "text/plain", "CacheControl": "max-age=60", "ACL": "private"},
    )
    assert headers["ContentType"] == CONTENT_TYPE_CSS
    assert headers["CacheControl"] == "max-age=60"
    assert headers["ACL"] == "private"


def test_custom_gzip_headers_replace_defaults():
    headers = upload_headers("a.css.gz", gzip_headers={"ContentEncoding": "gzip"})
    assert headers["ContentEncoding"] == "gzip"
    assert "CacheControl" not in headers
