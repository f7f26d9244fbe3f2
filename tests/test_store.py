# ABOUTME: Tests for host config documents (load/merge/remove/install)
# ABOUTME: Covers both JSON and the minimal TOML format
import json
from pathlib import Path
from unittest.mock import patch

import pytest
import tomli

from a11y_devkit.models import ServerDescriptor
from a11y_devkit.store import (
    ConfigStore,
    dump_config_document,
    install_servers,
    is_toml_file,
    load_config_document,
    merge_servers,
    remove_servers,
    remove_servers_from_file,
)

WCAG = ServerDescriptor(name="wcag", command="node", args=["index.js"])
ARIA = ServerDescriptor(name="aria", command="node", args=["aria.js"], type="stdio")


class TestLoadConfigDocument:
    """Tests for load_config_document function."""

    def test_missing_file_returns_empty(self, tmp_path: Path):
        assert load_config_document(tmp_path / "nope.json") == {}

    def test_blank_file_returns_empty(self, tmp_path: Path):
        path = tmp_path / "mcp.json"
        path.write_text("  \n")
        assert load_config_document(path) == {}

    def test_loads_json(self, tmp_path: Path):
        path = tmp_path / "mcp.json"
        path.write_text('{"servers": {"wcag": {"command": "node", "args": []}}}')
        assert load_config_document(path) == {"servers": {"wcag": {"command": "node", "args": []}}}

    def test_loads_toml_by_extension(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text('[mcp_servers.wcag]\ncommand = "node"\nargs = ["index.js"]\n')

        assert load_config_document(path) == {
            "mcp_servers": {"wcag": {"command": "node", "args": ["index.js"]}}
        }

    def test_corrupt_json_is_backed_up_and_reset(self, tmp_path: Path):
        """Test reset-on-corruption keeps the original bytes in .bak."""
        path = tmp_path / "mcp.json"
        path.write_text("{not json")

        assert load_config_document(path) == {}

        backup = tmp_path / "mcp.json.bak"
        assert backup.exists()
        assert backup.read_text() == "{not json"
        # Original is left in place until the next write
        assert path.read_text() == "{not json"

    def test_json_array_counts_as_corrupt(self, tmp_path: Path):
        path = tmp_path / "mcp.json"
        path.write_text("[1, 2]")

        assert load_config_document(path) == {}
        assert (tmp_path / "mcp.json.bak").exists()

    def test_undecodable_toml_is_backed_up_and_reset(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_bytes(b"[mcp_servers.x]\n\xff\xfe")

        assert load_config_document(path) == {}
        assert (tmp_path / "config.toml.bak").read_bytes() == b"[mcp_servers.x]\n\xff\xfe"

    def test_toml_outside_subset_is_not_corrupt(self, tmp_path: Path):
        """Test lines a full TOML parser rejects are read, not reset."""
        path = tmp_path / "config.toml"
        path.write_text("[mcp_servers.wcag]\ncommand = node\nargs = [\"index.js\"]\ninvalid [toml\n")

        assert load_config_document(path) == {
            "mcp_servers": {"wcag": {"command": "node", "args": ["index.js"]}}
        }
        assert not (tmp_path / "config.toml.bak").exists()

    def test_repeated_toml_table_is_merged(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text('[mcp_servers.x]\ncommand = "a"\n\n[mcp_servers.x]\nargs = ["b"]\n')

        assert load_config_document(path) == {"mcp_servers": {"x": {"command": "a", "args": ["b"]}}}
        assert not (tmp_path / "config.toml.bak").exists()

    def test_undecodable_bytes_are_corrupt(self, tmp_path: Path):
        path = tmp_path / "mcp.json"
        path.write_bytes(b"\xff\xfe\x00garbage")

        assert load_config_document(path) == {}
        assert (tmp_path / "mcp.json.bak").read_bytes() == b"\xff\xfe\x00garbage"


def test_is_toml_file():
    assert is_toml_file(Path("config.toml"))
    assert is_toml_file(Path("CONFIG.TOML"))
    assert not is_toml_file(Path("mcp.json"))
    assert not is_toml_file(Path("settings.jsonc"))


class TestMergeServers:
    """Tests for merge_servers function."""

    def test_merge_into_empty(self):
        result = merge_servers({}, [WCAG], "servers")
        assert result == {"servers": {"wcag": {"command": "node", "args": ["index.js"]}}}

    def test_type_only_when_supplied(self):
        result = merge_servers({}, [WCAG, ARIA], "servers")
        assert "type" not in result["servers"]["wcag"]
        assert result["servers"]["aria"]["type"] == "stdio"

    def test_preserves_unrelated_keys(self):
        existing = {"inputs": [{"id": "token"}], "servers": {"other": {"command": "x", "args": []}}}

        result = merge_servers(existing, [WCAG], "servers")

        assert result["inputs"] == [{"id": "token"}]
        assert result["servers"]["other"] == {"command": "x", "args": []}
        assert result["servers"]["wcag"]["command"] == "node"

    def test_last_write_wins(self):
        existing = {"servers": {"wcag": {"command": "old", "args": ["old.js"], "env": {"A": "1"}}}}
        newer = ServerDescriptor(name="wcag", command="node", args=["new.js"])

        result = merge_servers(existing, [WCAG, newer], "servers")

        assert result["servers"]["wcag"] == {"command": "node", "args": ["new.js"]}

    def test_does_not_mutate_input(self):
        existing = {"servers": {"other": {"command": "x", "args": []}}}
        snapshot = json.loads(json.dumps(existing))

        merge_servers(existing, [WCAG], "servers")

        assert existing == snapshot

    def test_custom_section_key(self):
        result = merge_servers({"mcpServers": {}}, [WCAG], "mcpServers")
        assert list(result) == ["mcpServers"]


class TestRemoveServers:
    """Tests for remove_servers function."""

    def test_remove_last_drops_section(self):
        merged = merge_servers({}, [WCAG], "servers")

        result = remove_servers(merged, ["wcag"], "servers")

        assert result.removed_count == 1
        assert result.updated == {}

    def test_remove_keeps_remaining_entries(self):
        merged = merge_servers({"theme": "dark"}, [WCAG, ARIA], "servers")

        result = remove_servers(merged, ["wcag"], "servers")

        assert result.removed_count == 1
        assert result.updated == {"theme": "dark", "servers": {"aria": ARIA.to_entry()}}

    def test_disjoint_names_leave_document_unchanged(self):
        existing = {"servers": {"wcag": {"command": "node", "args": []}}}

        result = remove_servers(existing, ["aria", "missing"], "servers")

        assert result.removed_count == 0
        assert result.updated is existing

    def test_missing_section(self):
        existing = {"theme": "dark"}
        result = remove_servers(existing, ["wcag"], "servers")
        assert result.removed_count == 0
        assert result.updated is existing

    @pytest.mark.parametrize(
        "document",
        [
            {},
            {"theme": "dark", "inputs": []},
            {"servers": {"keep": {"command": "x", "args": ["y"]}}, "z": 1},
            {"a": {"nested": True}, "servers": {"keep": {"command": "x", "args": []}}},
        ],
    )
    def test_remove_inverts_merge(self, document):
        """Test remove(merge(D, S), names(S)) == D."""
        merged = merge_servers(document, [WCAG, ARIA], "servers")

        result = remove_servers(merged, ["wcag", "aria"], "servers")

        assert result.removed_count == 2
        assert result.updated == document


class TestConfigStore:
    """Tests for ConfigStore install/remove."""

    def test_install_creates_parent_dirs(self, tmp_path: Path):
        path = tmp_path / ".vscode" / "mcp.json"

        ConfigStore().install(path, [WCAG], "servers")

        data = json.loads(path.read_text())
        assert data == {"servers": {"wcag": {"command": "node", "args": ["index.js"]}}}

    def test_install_json_format(self, tmp_path: Path):
        """Test 2-space indentation and trailing newline."""
        path = tmp_path / "mcp.json"

        ConfigStore().install(path, [WCAG], "servers")

        content = path.read_text()
        assert content.startswith('{\n  "servers": {\n    "wcag"')
        assert content.endswith("}\n")

    def test_install_preserves_caller_keys(self, tmp_path: Path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"editor.fontSize": 14, "mcpServers": {"mine": {"command": "x"}}}))

        ConfigStore().install(path, [WCAG], "mcpServers")

        data = json.loads(path.read_text())
        assert data["editor.fontSize"] == 14
        assert data["mcpServers"]["mine"] == {"command": "x"}
        assert "wcag" in data["mcpServers"]

    def test_install_is_idempotent(self, tmp_path: Path):
        """Test writing the same servers twice gives identical bytes."""
        path = tmp_path / "mcp.json"
        path.write_text('{"theme": "dark"}')
        store = ConfigStore()

        store.install(path, [WCAG, ARIA], "servers")
        first = path.read_bytes()
        store.install(path, [WCAG, ARIA], "servers")

        assert path.read_bytes() == first

    def test_install_toml_is_idempotent(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text('[profiles.fast]\nmodel = "o4-mini"\n')
        store = ConfigStore()

        store.install(path, [WCAG], "mcp_servers")
        first = path.read_text()
        store.install(path, [WCAG], "mcp_servers")

        assert path.read_text() == first
        assert first == (
            '[profiles.fast]\n'
            'model = "o4-mini"\n'
            '\n'
            '[mcp_servers.wcag]\n'
            'command = "node"\n'
            'args = ["index.js"]\n'
        )

    def test_install_over_corrupt_file(self, tmp_path: Path):
        path = tmp_path / "mcp.json"
        path.write_text("{oops")

        ConfigStore().install(path, [WCAG], "servers")

        assert json.loads(path.read_text()) == {"servers": {"wcag": WCAG.to_entry()}}
        assert (tmp_path / "mcp.json.bak").read_text() == "{oops"

    def test_install_keeps_tables_from_repeated_headers(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text('[mcp_servers.x]\ncommand = "a"\n\n[mcp_servers.x]\nargs = ["b"]\n')

        ConfigStore().install(path, [WCAG], "mcp_servers")

        assert load_config_document(path)["mcp_servers"] == {
            "x": {"command": "a", "args": ["b"]},
            "wcag": WCAG.to_entry(),
        }
        assert not (tmp_path / "config.toml.bak").exists()

    def test_install_quotes_bare_word_values(self, tmp_path: Path):
        """Test a token that isn't a TOML value is written back as a string."""
        path = tmp_path / "config.toml"
        path.write_text("[mcp_servers.x]\ncommand = node\ntimeout = 30\n")

        ConfigStore().install(path, [WCAG], "mcp_servers")

        written = tomli.loads(path.read_text())
        assert written["mcp_servers"]["x"] == {"command": "node", "timeout": 30}
        assert "wcag" in written["mcp_servers"]

    def test_install_with_backup_dir(self, tmp_path: Path):
        path = tmp_path / "mcp.json"
        path.write_text('{"theme": "dark"}')
        backups = tmp_path / "backups"

        ConfigStore(backup_dir=backups).install(path, [WCAG], "servers")

        copies = list(backups.iterdir())
        assert len(copies) == 1
        assert copies[0].read_text() == '{"theme": "dark"}'

    def test_backups_of_same_named_files_dont_collide(self, tmp_path: Path):
        backups = tmp_path / "backups"
        store = ConfigStore(backup_dir=backups)
        for folder in (".claude", ".vscode"):
            path = tmp_path / folder / "mcp.json"
            path.parent.mkdir()
            path.write_text("{}")
            store.install(path, [WCAG], "servers")

        names = sorted(p.name.split("_")[0] for p in backups.iterdir())
        assert names == ["claude-mcp", "vscode-mcp"]

    def test_install_new_file_needs_no_backup(self, tmp_path: Path):
        backups = tmp_path / "backups"
        ConfigStore(backup_dir=backups).install(tmp_path / "mcp.json", [WCAG], "servers")
        assert not backups.exists()

    def test_remove_skips_write_when_nothing_matches(self, tmp_path: Path):
        path = tmp_path / "mcp.json"
        original = '{"servers":{"other":{"command":"x"}}}'
        path.write_text(original)

        result = ConfigStore().remove(path, ["wcag"], "servers")

        assert result.removed_count == 0
        assert path.read_text() == original

    def test_remove_missing_file(self, tmp_path: Path):
        path = tmp_path / "mcp.json"
        result = ConfigStore().remove(path, ["wcag"], "servers")
        assert result.removed_count == 0
        assert not path.exists()

    def test_remove_from_toml(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        store = ConfigStore()
        store.install(path, [WCAG, ARIA], "mcp_servers")

        result = store.remove(path, ["wcag", "aria"], "mcp_servers")

        assert result.removed_count == 2
        assert path.read_text() == ""


def test_dump_quotes_non_bare_table_names(tmp_path: Path):
    content = dump_config_document(tmp_path / "config.toml", {"mcp_servers": {"has space": {"command": "x"}}})

    assert content.startswith('[mcp_servers."has space"]\n')
    assert tomli.loads(content)["mcp_servers"]["has space"] == {"command": "x"}


def test_dump_refuses_unreadable_toml(tmp_path: Path):
    """Test broken writer output never reaches the file."""
    path = tmp_path / "config.toml"
    path.write_text("")

    with patch("a11y_devkit.store.serialize_simple_toml", return_value="[broken\n"):
        with pytest.raises(ValueError, match="Refusing to write"):
            ConfigStore().install(path, [WCAG], "mcp_servers")

    assert path.read_text() == ""


def test_module_level_install_and_remove(tmp_path: Path):
    path = tmp_path / ".claude" / "mcp.json"

    install_servers(path, [WCAG, ARIA], "mcpServers")
    result = remove_servers_from_file(path, ["aria"], "mcpServers")

    assert result.removed_count == 1
    assert json.loads(path.read_text()) == {"mcpServers": {"wcag": WCAG.to_entry()}}
