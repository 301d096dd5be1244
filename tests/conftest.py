"""
Pytest fixtures for rule adapter tests.
"""
import tempfile
from pathlib import Path

import pytest
from casbin.model import Model

from rule_adapter import PolicyAdapter, SQLiteRuleStorage

RBAC_MODEL = """
[request_definition]
r = sub, obj, act

[policy_definition]
p = sub, obj, act

[role_definition]
g = _, _

[policy_effect]
e = some(where (p.eft == allow))

[matchers]
m = g(r.sub, p.sub) && r.obj == p.obj && r.act == p.act
"""


def write_config(directory: Path, db_path: str, table: str | None = None) -> Path:
    """Write a storage config into `directory` and return its path"""
    config_path = directory / "test_config.yaml"
    table_line = f'\n  table: "{table}"' if table else ""

    config_content = f"""
adapter:
  type: "sqlite"

database:
  path: "{db_path}"{table_line}
  journal_mode: "WAL"
  synchronous: "NORMAL"
"""

    with open(config_path, "w") as f:
        f.write(config_content)
    return config_path


@pytest.fixture
def config_dir():
    """Temporary directory for config and database files"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def sqlite_storage(config_dir):
    """Create test storage with in-memory DB"""
    config_path = write_config(config_dir, ":memory:")

    storage = SQLiteRuleStorage(str(config_path))
    storage.connect()

    yield storage

    storage.disconnect()


@pytest.fixture
def file_based_config(config_dir):
    """Config pointing at a file-based DB"""
    return write_config(config_dir, str(config_dir / "rules.db"))


@pytest.fixture
def adapter(sqlite_storage):
    """Policy adapter over in-memory storage"""
    return PolicyAdapter(sqlite_storage)


@pytest.fixture
def recorded_lines():
    """Lines handed to the line loader, in call order"""
    return []


@pytest.fixture
def recording_adapter(sqlite_storage, recorded_lines):
    """Policy adapter whose line loader only records lines"""
    return PolicyAdapter(
        sqlite_storage, line_loader=lambda line, model: recorded_lines.append(line)
    )


def new_model() -> Model:
    """Fresh RBAC model with no policy"""
    model = Model()
    model.load_model_from_text(RBAC_MODEL)
    return model


@pytest.fixture
def model():
    return new_model()


@pytest.fixture
def make_model():
    """Factory for fresh RBAC models"""
    return new_model
