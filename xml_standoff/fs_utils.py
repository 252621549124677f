"""Filesystem utilities for transparent handling of local and S3 inputs using PyFilesystem2."""
import contextlib
import os
from pathlib import Path

import fs
import fs.opener
import fs.path
from fs.osfs import OSFS
from fs_s3fs import S3FS


def get_path_type(path_or_url):
    """
    Determine the type of path/URL.

    Returns:
        str: "s3" for S3 URLs, "local" for local paths
    """
    if str(path_or_url).startswith("s3://"):
        return "s3"
    return "local"


def open_filesystem(path_or_url):
    """
    Open a filesystem from either a local path or an S3 URL.

    Args:
        path_or_url (str): Either a local filesystem path or an S3 URL
                          Examples:
                          - "/path/to/dir" (local)
                          - "s3://bucket-name/prefix/" (S3)

    Returns:
        FS: A PyFilesystem2 filesystem object
    """
    if get_path_type(path_or_url) == "s3":
        parse_result = fs.opener.parse(path_or_url)
        bucket_name, _, dir_path = parse_result.resource.partition("/")
        if not bucket_name:
            raise ValueError(f"Invalid S3 bucket name in '{path_or_url}'")

        # Use strict=False to avoid needing directory marker objects
        strict = parse_result.params.get("strict") == "1"

        s3fs = S3FS(
            bucket_name,
            dir_path=dir_path or "/",
            aws_access_key_id=parse_result.username or None,
            aws_secret_access_key=parse_result.password or None,
            endpoint_url=parse_result.params.get("endpoint_url", None),
            strict=strict
        )
        return s3fs

    return OSFS(path_or_url)


def source_uri(path_or_url):
    """URI identifying an input: the URL itself for S3, a file:// URI for local paths."""
    if get_path_type(path_or_url) == "s3":
        return str(path_or_url)
    return Path(path_or_url).resolve().as_uri()


def source_stem(path_or_url):
    """File name of an input without its extension."""
    name = fs.path.basename(str(path_or_url).rstrip("/"))
    return os.path.splitext(name)[0]


@contextlib.contextmanager
def open_binary(path_or_url):
    """
    Open a single file given as a local path or an S3 URL for binary reading.

    The containing directory is opened as a filesystem and closed on exit.
    """
    path_or_url = str(path_or_url)
    if get_path_type(path_or_url) == "s3":
        dirname, filename = fs.path.split(path_or_url)
    else:
        dirname, filename = os.path.split(os.path.abspath(path_or_url))
    filesystem = open_filesystem(dirname)
    try:
        with filesystem.open(filename, 'rb') as f:
            yield f
    finally:
        filesystem.close()
