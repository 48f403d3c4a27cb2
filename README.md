# accidentlogs

A small library for working with the accident logs of one Procore project
through the Procore sandbox API. It exchanges OAuth authorization codes for
access tokens, lists, reads, creates, updates and deletes accident logs, and
filters lists of logs locally.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Configuration

`ProcoreSettings.from_env(environ)` reads its values from a mapping, or from
`os.environ` when none is given:

| Variable                | Meaning                                          |
|-------------------------|--------------------------------------------------|
| `PROCORE_CLIENT_ID`     | OAuth client id of the Procore app               |
| `PROCORE_CLIENT_SECRET` | OAuth client secret of the Procore app           |
| `PROCORE_PROJECT_ID`    | project whose accident logs are used             |
| `PROCORE_COMPANY_ID`    | company sent in the `Procore-Company-Id` header  |

Missing variables become empty strings.

## Modules

### `accidentlogs.models`

`AccidentLog` is a dataclass with the fields `id`, `comments`, `date`,
`datetime`, `involved_company`, `involved_name`, `time_hour`, `time_minute`,
`severity` and `location`.

- `AccidentLog.from_json(data)` builds a log from decoded JSON. Unknown keys
  are ignored. Missing or null keys keep their defaults. A value of the wrong
  type, or data that is not an object, raises `ValueError`.
- `create_form()` returns the `accident_log[...]` form fields for creating a
  log. The seven core fields are always present. `severity` and `location`
  are only included when they are set.
- `update_form()` returns only the fields that hold a value: non-empty
  strings and non-zero numbers. `id` is never included.

### `accidentlogs.filters`

- `matches_search(log, term)` is true when the term appears, ignoring case,
  in `involved_name`, `involved_company`, `comments`, `location` or
  `severity`. It is also true when the lowered term appears in `date`.
- `filter_logs(logs, severity=None, company=None, search=None)` keeps the
  logs that pass both of these checks:
  - `severity` equals the given severity, ignoring case;
  - `involved_company` contains the given company text, ignoring case.

  The search term is applied before the selection is filled, so it never
  removes a log from the result.

### `accidentlogs.procore`

`ProcoreClient(settings, session=None)` talks to the Procore sandbox. It
takes a `requests.Session`, or creates a new one.

- `exchange_code(code)` posts the code to the OAuth token endpoint with a
  10 second timeout. It returns a dict with `access_token`, `token_type` and
  `expires_in`.
- `list_logs(token)`, `get_log(token, log_id)`, `create_log(token, log)`,
  `update_log(token, log_id, log)` and `delete_log(token, log_id)` pass the
  token on unchanged as the `Authorization` header. Each returns an
  `UpstreamResponse` holding the upstream `status`, `content_type` and raw
  `body`.
- `list_logs_between(token, start_date=None, end_date=None)` fetches the
  logs, adding the dates as query parameters when they are given. It returns
  the decoded JSON list of objects.

Errors are raised as follows:

- An empty code or log id raises `ValueError`.
- A failed request, an unexpected response body or a non-200 token response
  raises `ProcoreError`. Its `status` attribute holds the HTTP status to
  report: the upstream status for a rejected token request, otherwise `500`.
- `list_logs_between` also raises `ProcoreError` when the project or company
  id is not set.

## Example

```python
from accidentlogs.filters import filter_logs
from accidentlogs.procore import ProcoreClient, ProcoreSettings

client = ProcoreClient(ProcoreSettings.from_env())
logs = client.list_logs_between("Bearer token", start_date="2024-01-01")
severe = filter_logs(logs, severity="high", company="acme")
```

## What this package does not do

This package has no HTTP server and no command-line program. It does not
serve endpoints, handle CORS or load `.env` files. It provides the client,
the data model and the filtering that such a service would be built on.