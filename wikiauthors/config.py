from __future__ import annotations

# MediaWiki action API endpoint; {lang} is the wiki language subdomain
WIKI_API_TEMPLATE = "https://{lang}.wikipedia.org/w/api.php"

# Members requested per categorymembers call
# The API accepts up to 500 for anonymous clients, but every member costs an
# extra langlinks request, so small pages keep progress logging responsive
CATEGORY_MEMBERS_LIMIT = 25

# Only article pages are authors; subcategories and files are ignored
CATEGORY_MEMBER_TYPE = "page"

# MediaWiki API etiquette asks every client to identify itself
USER_AGENT = "wikiauthors/0.1 (sharedBooks author catalogue)"

# HTTP request configuration
# Default timeout for HTTP requests (in seconds)
HTTP_TIMEOUT_DEFAULT = 30.0

# A failed request aborts the whole run, so retries are disabled by default
# Raise this to let urllib3 retry transient failures with exponential backoff
HTTP_MAX_RETRIES = 0
HTTP_BACKOFF_INITIAL = 0.5  # Initial backoff delay in seconds

# HTTP status codes that should trigger retries (only when HTTP_MAX_RETRIES > 0)
HTTP_RETRY_STATUS_CODES = (408, 429, 500, 502, 503, 504)

# Indentation used when writing the dataset file
DEFAULT_JSON_INDENT = 3

# Names at or above this similarity (0-1) are reported as possible duplicates
# when a fetched author does not resolve to an existing record
# Lower = more warnings, Higher = only near-identical spellings
NAME_SIMILARITY_WARN_THRESHOLD = 0.92

# Process exit codes
EXIT_OK = 0
EXIT_REMOTE_ERROR = 1
EXIT_USAGE = 2
EXIT_NOT_FOUND = 3
EXIT_IO_ERROR = 4

# Upper bound of ids the API accepts in one pageids= parameter for anonymous clients
PAGE_IDS_PER_REQUEST = 50
