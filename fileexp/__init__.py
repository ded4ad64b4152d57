# fileexp/__init__.py
"""
FileExp - filename translation for a file browser

Translates Japanese file names through a cloud translation API or a
privately hosted model server behind a TLS gateway.
"""

from pathlib import Path


def _get_version() -> str:
    """
    pyproject.tomlからバージョンを動的に取得する。

    Returns:
        str: バージョン文字列（例: "0.1.0"）
    """
    try:
        import tomllib  # Python 3.11+ standard library

        pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            with open(pyproject_path, "rb") as f:
                data = tomllib.load(f)
            return data.get("project", {}).get("version", "0.0.0")
    except (ImportError, OSError, ValueError):
        pass

    # フォールバック: ハードコードされたバージョン
    return "0.1.0"


__version__ = _get_version()
__app_name__ = "FileExp"
