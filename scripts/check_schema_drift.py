from __future__ import annotations

import sys
from typing import Optional

from alembic.autogenerate import api as ag_api
from alembic.runtime.migration import MigrationContext
from sqlalchemy import inspect

from cfcraffle.db.engine import make_engine
from cfcraffle.models import Base

EXPECTED_TABLES = frozenset(Base.metadata.tables)


def _describe(ops, indent: int = 0) -> list[str]:
    lines = []
    for op in ops:
        lines.append(f"{'  ' * indent}- {op}")
        lines.extend(_describe(getattr(op, "ops", None) or [], indent + 1))
    return lines


def main(argv: Optional[list[str]] = None) -> int:
    """Compare the live raffle schema with the models.

    Exit codes: 0 in sync, 1 drift detected, 2 could not check.
    """
    args = sys.argv[1:] if argv is None else argv
    engine = make_engine(args[0] if args else None)
    url_display = engine.url.render_as_string(hide_password=True)
    try:
        with engine.connect() as connection:
            missing = EXPECTED_TABLES - set(inspect(connection).get_table_names())
            if missing:
                print(
                    f"Schema drift check: FAILED for {url_display}. "
                    f"Missing tables: {', '.join(sorted(missing))} (run scripts/init_db.py)."
                )
                return 1
            context = MigrationContext.configure(
                connection=connection,
                opts={
                    "compare_type": True,
                    "compare_server_default": True,
                    "render_as_batch": connection.dialect.name == "sqlite",
                },
            )
            upgrade_ops = ag_api.produce_migrations(context, Base.metadata).upgrade_ops
            if upgrade_ops is None:
                print(f"Schema drift check: ERROR for {url_display}: missing upgrade ops.")
                return 2
            if upgrade_ops.is_empty():
                print(f"Schema drift check: OK for {url_display}.")
                return 0
            print(f"Schema drift check: FAILED for {url_display}. Differences detected:")
            print("\n".join(_describe(upgrade_ops.ops or [])))
            return 1
    except Exception as exc:
        print(f"Schema drift check: ERROR for {url_display}: {exc}", file=sys.stderr)
        return 2
    finally:
        engine.dispose()


if __name__ == "__main__":
    raise SystemExit(main())
