from __future__ import annotations

import json
import socket
import urllib.error

import requests

from .config import EXIT_IO_ERROR, EXIT_NOT_FOUND, EXIT_REMOTE_ERROR, EXIT_USAGE

__all__ = [
    "HTTP_ERRORS",
    "TIMEOUT_ERRORS",
    "NETWORK_ERRORS",
    "DECODE_ERRORS",
    "PARSE_ERRORS",
    "JSON_ERRORS",
    "FILE_IO_ERRORS",
    "FILE_READ_ERRORS",
    "FILE_WRITE_ERRORS",
    "FIELD_ACCESS_ERRORS",
    "WikiAuthorsError",
    "UsageError",
    "InvalidQueryError",
    "UnsupportedActionError",
    "RemoteSourceError",
    "CategoryNotFoundError",
    "DatasetError",
]

# errors raised by requests/urllib when an HTTP request fails or a URL cannot be reached
HTTP_ERRORS = (urllib.error.HTTPError, urllib.error.URLError, requests.exceptions.RequestException)

# errors that signal an operation has taken too long and hit a timeout at the OS or socket level
TIMEOUT_ERRORS = (TimeoutError, socket.timeout)

# umbrella group for network-related failures
NETWORK_ERRORS = HTTP_ERRORS + TIMEOUT_ERRORS

# errors that occur when converting response bytes into text using a specific encoding
DECODE_ERRORS = (UnicodeDecodeError, UnicodeError)

# errors raised while interpreting structured data such as JSON or response fields
PARSE_ERRORS = (ValueError, TypeError, KeyError)

# JSON parsing errors when loading the dataset or decoding option values
JSON_ERRORS = (json.JSONDecodeError, ValueError, TypeError)

# file system operation errors when reading or writing the dataset
# Note: FileNotFoundError is a subclass of OSError, so both are included for clarity
FILE_IO_ERRORS = (FileNotFoundError, OSError)

# combined file read errors including I/O failures, encoding issues, and malformed data
FILE_READ_ERRORS = FILE_IO_ERRORS + DECODE_ERRORS + PARSE_ERRORS

# file write operation errors including permissions, disk full, and encoding issues
FILE_WRITE_ERRORS = (OSError, TypeError, UnicodeEncodeError)

# field access and attribute lookup errors when extracting data from API responses
FIELD_ACCESS_ERRORS = (TypeError, ValueError, KeyError, AttributeError)


class WikiAuthorsError(Exception):
    """
    Base class for every error the tool reports to the user. Each subclass
    carries the process exit code that main() returns for it.
    """
    exit_code = EXIT_REMOTE_ERROR


class UsageError(WikiAuthorsError):
    """
    Invalid or missing command-line input, detected before any remote request
    or dataset mutation takes place.
    """
    exit_code = EXIT_USAGE


class InvalidQueryError(UsageError):
    """
    A --find or --add value that is not valid JSON or is not a JSON object.
    """


class UnsupportedActionError(UsageError):
    """
    An edit action that is recognised but not implemented yet.
    """

    def __init__(self, verb: str):
        super().__init__(f"Action --{verb} is not supported yet")
        self.verb = verb


class RemoteSourceError(WikiAuthorsError):
    """
    Transport failure, upstream API error payload, or a response that does
    not have the expected shape.
    """
    exit_code = EXIT_REMOTE_ERROR


class CategoryNotFoundError(RemoteSourceError):
    """
    The requested category does not exist on the wiki.
    """
    exit_code = EXIT_NOT_FOUND

    def __init__(self, lang: str, title: str):
        super().__init__(f"Category '{title}' not found on {lang}.wikipedia.org")
        self.lang = lang
        self.title = title


class DatasetError(WikiAuthorsError):
    """
    The dataset file cannot be read, is not a list of author records, or the
    result cannot be written.
    """
    exit_code = EXIT_IO_ERROR
