# src/dbsweep/rules/builtin/__init__.py
from dbsweep.rules.builtin import not_empty, path_exists, regex  # noqa: F401
