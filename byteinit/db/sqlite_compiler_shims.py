"""
Lets the PostgreSQL column types used by ByteInit models compile on SQLite.

Profile tech stacks and notification metadata are JSONB columns; SQLite gets
plain JSON. Only whole values are stored and loaded, so no JSONB operators
are needed. Imported for its side effect by ``byteinit.db.models``.
"""
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_as_json(element, compiler, **kw):  # pragma: no cover - trivial
    return "JSON"
