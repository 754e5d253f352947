"""
Demo log API for logdash.

Serves bucket catalog, log listings, log content and search over in-memory
fixture files so the CLI and integration tests have a log service to talk to.
Keys follow <env>/<app>/<vm>/<YYYY-MM-DD>/<file>.
"""

import re
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import PlainTextResponse

# Trailing sequence number in names like cash2atm-01-01-2024-3.log
SEQUENCE_PATTERN = re.compile(r".*?-(\d+)\.log$")
UNSEQUENCED = 2**31 - 1

FIXTURE_MODIFIED = datetime(2024, 1, 1, 23, 59, tzinfo=timezone.utc)

FIXTURE_FILES: dict[str, dict[str, str]] = {
    "logs-primary": {
        "DEV/cash2atm/10.0.0.5/2024-01-01/cash2atm-01-01-2024-2.log": (
            "2024-01-01 10:00:00 INFO withdrawal accepted\n"
            "2024-01-01 10:00:05 ERROR dispenser jam on unit 4\n"
        ),
        "DEV/cash2atm/10.0.0.5/2024-01-01/cash2atm-01-01-2024-1.log": (
            "2024-01-01 00:00:01 INFO service started\n"
            "2024-01-01 00:00:02 INFO connected to switch\n"
        ),
        "DEV/cash2atm/10.0.0.6/2024-01-01/cash2atm-01-01-2024-3.log": (
            "2024-01-01 18:30:00 WARN slow host response\n"
            "2024-01-01 18:30:09 ERROR host timeout after 9s\n"
        ),
        "DEV/cash2atm/10.0.0.5/2024-01-02/cash2atm-02-01-2024-1.log": (
            "2024-01-02 00:00:01 INFO service started\n"
        ),
        "PROD/cash2atm/10.1.0.9/2024-01-01/cash2atm-01-01-2024-1.log": (
            "2024-01-01 00:00:01 INFO service started\n"
        ),
    },
    "logs-archive": {},
}

# Mutable copy served by the endpoints; reset_demo_state() restores fixtures
_files: dict[str, dict[str, str]] = {}

app = FastAPI(title="logdash Demo Log API", version="0.1.0")


def reset_demo_state() -> None:
    """Restore fixture files (for repeated demo runs and tests)."""
    _files.clear()
    for bucket, files in FIXTURE_FILES.items():
        _files[bucket] = dict(files)


def seed(bucket: str, key: str, content: str) -> None:
    """Add or replace one log file."""
    _files.setdefault(bucket, {})[key] = content


def extract_sequence(file_name: str) -> int:
    match = SEQUENCE_PATTERN.match(file_name)
    if match:
        return int(match.group(1))
    return UNSEQUENCED


def _require(**params: str) -> None:
    if not all(params.values()):
        names = ", ".join(params)
        raise HTTPException(status_code=400, detail=f"Missing required parameters ({names})")


def _bucket_files(bucket: str) -> dict[str, str]:
    if bucket not in _files:
        raise HTTPException(
            status_code=400, detail=f"Invalid or unconfigured bucket specified: {bucket}"
        )
    return _files[bucket]


def _list_entries(bucket: str, env: str, app_name: str, date: str) -> list[dict]:
    files = _bucket_files(bucket)
    entries = []
    for key, content in files.items():
        parts = key.split("/")
        if len(parts) != 5 or parts[0] != env or parts[1] != app_name or parts[3] != date:
            continue
        file_name = parts[4]
        entries.append(
            {
                "key": key,
                "fileName": file_name,
                "lastModified": FIXTURE_MODIFIED.isoformat(),
                "size": len(content.encode("utf-8")),
                "sequence": extract_sequence(file_name),
            }
        )
    entries.sort(key=lambda e: e["sequence"])
    return entries


@app.get("/api/config/buckets")
def api_buckets():
    """List configured buckets, sorted by name."""
    return sorted(_files)


@app.get("/api/logs")
def api_logs(
    bucket: str = "",
    env: str = "",
    app_name: str = Query("", alias="appName"),
    date: str = "",
):
    """List log files for one environment, app and day, ordered by sequence."""
    _require(bucket=bucket, env=env, appName=app_name, date=date)
    return _list_entries(bucket, env, app_name, date)


@app.get("/api/log-content", response_class=PlainTextResponse)
def api_log_content(bucket: str = "", key: str = ""):
    """Full text of one log file."""
    _require(bucket=bucket, key=key)
    files = _bucket_files(bucket)
    if key not in files:
        raise HTTPException(status_code=404, detail=f"No such log file: {key}")
    return files[key]


@app.get("/api/search")
def api_search(
    bucket: str = "",
    env: str = "",
    app_name: str = Query("", alias="appName"),
    date: str = "",
    query: str = "",
):
    """Names of files in scope with at least one line containing query."""
    _require(bucket=bucket, env=env, appName=app_name, date=date, query=query)
    files = _bucket_files(bucket)
    matches = []
    for entry in _list_entries(bucket, env, app_name, date):
        if any(query in line for line in files[entry["key"]].splitlines()):
            matches.append(entry["fileName"])
    return matches


reset_demo_state()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
