"""Alembic environment for the bundled keys-table migrations.

Only KeyMint.migrate() drives this module: it hands over the sync connection
in ``config.attributes["connection"]`` and the version table name in the
``version_table`` main option.
"""

from alembic import context
from sqlmodel import SQLModel

from keymint.config import ALEMBIC_VERSION_TABLE
from keymint.core.errors import StorageError
from keymint.models import Key  # noqa: F401  registers the keys table

config = context.config

connection = config.attributes.get("connection")
if connection is None:
    raise StorageError("keymint migrations need a connection; call KeyMint.migrate()")

context.configure(
    connection=connection,
    target_metadata=SQLModel.metadata,
    version_table=config.get_main_option("version_table") or ALEMBIC_VERSION_TABLE,
    render_as_batch=True,
)

with context.begin_transaction():
    context.run_migrations()
