import os

from asset_uploader.directory import get_file_names


def test_lists_nested_files_in_order(write_file, public_dir):
    write_file("js/app.js", "1")
    write_file("css/app.css", "2")
    write_file("favicon.ico", "3")
    result = get_file_names(str(public_dir))
    assert result == [
        str(public_dir / "css" / "app.css"),
        str(public_dir / "favicon.ico"),
        str(public_dir / "js" / "app.js"),
    ]


def test_matched_directory_is_pruned(write_file, public_dir):
    write_file("js/views/page.js", "1")
    write_file("js/app.js", "2")
    result = get_file_names(str(public_dir), [r"^js/views"])
    assert result == [str(public_dir / "js" / "app.js")]


def test_matched_file_is_omitted(write_file, public_dir):
    write_file("img/.DS_Store", "")
    write_file("img/logo.png", "png")
    result = get_file_names(str(public_dir), [r"\.DS_Store$"])
    assert result == [str(public_dir / "img" / "logo.png")]


def test_empty_directory(public_dir):
    assert get_file_names(str(public_dir)) == []


def test_directory_symlink_is_not_followed(write_file, public_dir):
    write_file("css/app.css", "1")
    os.symlink(public_dir, public_dir / "loop")
    assert get_file_names(str(public_dir)) == [str(public_dir / "css" / "app.css")]


def test_file_symlink_is_listed(write_file, public_dir):
    target = write_file("css/app.css", "1")
    os.symlink(target, public_dir / "app-link.css")
    assert get_file_names(str(public_dir)) == [
        str(public_dir / "app-link.css"),
        str(public_dir / "css" / "app.css"),
    ]
