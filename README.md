# ctf01d

Building blocks for the server side of a CTF game platform.

## Modules

- `ctf01d.config` reads a YAML file with `http` (`port`, `host`), `logger`
  (`log_level`) and `db` (`driver`, `data_source`) sections. The environment
  variables `HTTP_PORT`, `HTTP_HOST`, `LOG_LEVEL` and `data_source` override
  the file; `port` defaults to `4102` and `host` to `localhost`.
  `load_config(path)` returns a frozen `Config` made of `HttpConfig`,
  `LogConfig` and `DbConfig`, and raises `ConfigError` when the file cannot be
  read or parsed or a required value is empty. `parse_log_level(name)` and
  `Config.log_level()` map `debug`, `info`, `warn` and `error` to `logging`
  levels; any other name gives `logging.INFO`.
- `ctf01d.helper` has `hash_password` (bcrypt, cost 10, `$2a$` prefix),
  `check_password_hash`, which returns `False` for a wrong password or a
  malformed hash, and `avatar_url(name)`, which returns
  `"api/v1/avatar/"` followed by the URL-quoted name.
- `ctf01d.spa` has `HtmlRouter(root="./html/")`, a WSGI application for a
  single-page front end. Paths starting with `/api/` or ending in `/api` get
  404 `API handler not found`; existing files under `root` are sent as they
  are; a missing file or a directory under `/assets/` gets 404
  `File in assets not found`; anything else gets `root/index.html`.
- `ctf01d.logger` has `RequestLogger(app, name)`, WSGI middleware that logs
  method, request URI, `name` and elapsed time at INFO level when the
  response body is closed.
- `ctf01d.auth` has `AuthenticationMiddleware(app, sessions)`. Requests whose
  WSGI environ holds the key `auth.SCOPES_KEY` (`"sessionAuth.Scopes"`) must
  carry a `session_id` cookie that `sessions.user_for_session(session_id)`
  resolves; the user id is then put into the environ under
  `auth.USER_ID_KEY`. A missing cookie or a failed lookup gives a JSON 401
  response. `SessionStore` is the protocol such a store follows, and
  `InvalidSession` is the exception it is meant to raise.
- `ctf01d.updates` defines `Update` (`from_id`, `to_id`, `description`,
  `statements`), built with `Update.from_name(name, description, statements)`
  from names of the form `DatabaseUpdate_<from>_<to>`
  (`parse_update_name` raises `ValueError` on any other shape or on equal
  ids). `UPDATES` lists the built-in schema updates: the `users` table with
  an admin user and sample users, the `uuid-ossp` extension, and the
  `sessions` and `universities` tables. The SQL is written for PostgreSQL.
- `ctf01d.updater` has `init_database(connection)`, which takes a DB-API
  connection, creates the `database_updates` table if it is missing, and
  applies every registered update whose starting id is installed, repeating
  until nothing new is applied. Each applied update is recorded with
  `insert_update_info`; `installed_versions` lists what is recorded. Failures
  raise `MigrationError`. `register_update` and `register_all_updates` build
  the registry of updates keyed by their starting id.

## Install

```
pip install .
```

## Example

```python
from ctf01d.config import load_config
from ctf01d.helper import hash_password, check_password_hash

cfg = load_config("configs/config.development.yml")
print(cfg.http.host, cfg.http.port, cfg.log_level())

password = "password"
hashed = hash_password(password)
assert check_password_hash(password, hashed)
```

Serving the front end with request logging:

```python
from wsgiref.simple_server import make_server

from ctf01d.logger import RequestLogger
from ctf01d.spa import HtmlRouter

app = RequestLogger(HtmlRouter("./html/"), "html")
make_server("localhost", 4102, app).serve_forever()
```

Protecting an application with sessions:

```python
from ctf01d.auth import AuthenticationMiddleware, InvalidSession


class MemorySessions:
    def __init__(self, sessions):
        self.sessions = sessions

    def user_for_session(self, session_id):
        try:
            return self.sessions[session_id]
        except KeyError:
            raise InvalidSession(session_id) from None


protected = AuthenticationMiddleware(app, MemorySessions({}))
```

## What this package does not do

- It has no command and no HTTP API for users, teams, games, services,
  results or universities; it only provides the pieces listed above.
- It opens no database connections and ships no database driver:
  `init_database` works on a DB-API connection that you create.
- Nothing here stores sessions; `AuthenticationMiddleware` needs a
  `SessionStore` that you supply.

## Tests

```
pip install .[test]
pytest
```