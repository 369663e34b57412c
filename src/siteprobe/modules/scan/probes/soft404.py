"""Tell real sensitive files apart from catch-all and soft-404 pages.

Many servers answer every path with ``200`` and a generic page. The
classifier looks at the start of the body and returns the status the path
*effectively* has: the received status when the content is plausible, 404
when it is not.
"""

import re

NOT_FOUND = 404
MIN_BODY_LENGTH = 5

_ERROR_TITLE = re.compile(
    r"<title>.*(?:404|not found|page not found|error|oops|doesn't exist).*</title>", re.IGNORECASE
)
_NOT_FOUND_HEADING = re.compile(r"<h1>.*(?:404|not found|page not found).*</h1>", re.IGNORECASE)
_HTML = re.compile(r"<(!DOCTYPE|html|head|body)", re.IGNORECASE)

# Paths that are never legitimately served as HTML.
NON_HTML_PATHS = frozenset(
    {
        "/.env",
        "/.git/HEAD",
        "/.git/config",
        "/.htaccess",
        "/backup.sql",
        "/dump.sql",
        "/db.sql",
        "/.DS_Store",
        "/composer.json",
        "/package.json",
        "/Gruntfile.js",
        "/Dockerfile",
        "/docker-compose.yml",
        "/.dockerenv",
        "/config.php",
        "/wp-config.php.bak",
        "/.npmrc",
        "/.aws/credentials",
        "/debug.log",
        "/error.log",
        "/access.log",
        "/.vscode/settings.json",
    }
)

# Admin panels are HTML; an HTML answer only counts if it looks like the panel.
ADMIN_FINGERPRINTS = {
    "/wp-admin/": re.compile(r"wp-login|wordpress", re.IGNORECASE),
    "/wp-login.php": re.compile(r"<form[^>]*wp-login", re.IGNORECASE),
    "/phpmyadmin/": re.compile(r"phpMyAdmin|pma_", re.IGNORECASE),
    "/adminer.php": re.compile(r"adminer", re.IGNORECASE),
    "/server-status": re.compile(r"Server Version|Apache", re.IGNORECASE),
    "/elmah.axd": re.compile(r"ELMAH|Error Log", re.IGNORECASE),
}

# Content every genuine copy of these files carries.
CONTENT_FINGERPRINTS = {
    "/.env": re.compile(r"[A-Z_]+="),
    "/.git/HEAD": re.compile(r"ref:"),
    "/.git/config": re.compile(r"\[core\]|\[remote"),
    "/composer.json": re.compile(r'"require"'),
    "/package.json": re.compile(r'"name"|"version"'),
    "/Dockerfile": re.compile(r"FROM |RUN |CMD ", re.IGNORECASE),
    "/docker-compose.yml": re.compile(r"services:|version:", re.IGNORECASE),
}


def is_html(body: str) -> bool:
    return bool(_HTML.search(body))


def classify_response(status: int, body: str, path: str) -> int:
    """Return the effective status of ``path`` given what the server sent.

    Only 2xx answers are examined; any other status comes back unchanged.
    """
    if not 200 <= status < 300:
        return status
    if not body or len(body) < MIN_BODY_LENGTH:
        return NOT_FOUND
    if _ERROR_TITLE.search(body) or _NOT_FOUND_HEADING.search(body):
        return NOT_FOUND

    html = is_html(body)
    if html and path in NON_HTML_PATHS:
        return NOT_FOUND

    admin = ADMIN_FINGERPRINTS.get(path)
    if html and admin is not None and not admin.search(body):
        return NOT_FOUND

    shape = CONTENT_FINGERPRINTS.get(path)
    if shape is not None and not shape.search(body):
        return NOT_FOUND

    return status
