"""Tests for flags.py — the flag registry and its alias overlay."""

import pytest

from awx_cli.builders import _SubcommandParser
from awx_cli.exceptions import CliError, CommandConstructionError
from awx_cli.flags import (
    ALIAS_ANNOTATION,
    AliasFlag,
    FlagSet,
    flag_or_alias_changed,
    parse_bool,
    register_alias,
)


def _page_flags():
    flags = FlagSet("list")
    flags.add_int("page-size", 20, "Results per page", shorthand="n")
    register_alias(flags, "page-size", "ps")
    return flags


def _parse(flags, *argv):
    parser = _SubcommandParser(prog="test")
    flags.bind(parser)
    return parser.parse_args(list(argv))


# ---------------------------------------------------------------------------
# Alias overlay
# ---------------------------------------------------------------------------


class TestRegisterAlias:
    def test_alias_writes_canonical_value(self):
        flags = _page_flags()
        _parse(flags, "--ps", "50")
        assert flags.value("page-size") == 50

    def test_alias_and_canonical_are_equivalent(self):
        via_alias, via_canonical = _page_flags(), _page_flags()
        _parse(via_alias, "--ps=7")
        _parse(via_canonical, "--page-size=7")
        assert via_alias.value("page-size") == via_canonical.value("page-size") == 7
        assert via_alias.lookup("page-size").changed
        assert via_canonical.lookup("page-size").changed

    def test_alias_marks_itself_changed(self):
        flags = _page_flags()
        _parse(flags, "--ps", "3")
        assert flags.lookup("ps").changed is True

    def test_canonical_does_not_mark_alias(self):
        flags = _page_flags()
        _parse(flags, "--page-size", "3")
        assert flags.lookup("ps").changed is False

    def test_alias_is_hidden_and_annotated(self):
        flags = _page_flags()
        alias = flags.lookup("ps")
        assert isinstance(alias, AliasFlag)
        assert alias.hidden is True
        assert alias.annotations == {ALIAS_ANNOTATION: ["page-size"]}

    def test_alias_absent_from_help(self):
        flags = _page_flags()
        parser = _SubcommandParser(prog="test")
        flags.bind(parser)
        text = parser.format_help()
        assert "--page-size" in text
        assert "--ps " not in text
        assert "=true" not in text

    def test_usage_lists_alias(self):
        flags = _page_flags()
        assert flags.lookup("page-size").help_text == "Results per page [--ps]"

    def test_second_alias_extends_bracket(self):
        flags = _page_flags()
        register_alias(flags, "page-size", "size")
        assert flags.lookup("page-size").help_text == "Results per page [--ps, --size]"

    def test_missing_canonical_raises(self):
        flags = FlagSet("cmd")
        with pytest.raises(CommandConstructionError, match="--nope is not defined"):
            register_alias(flags, "nope", "n")

    def test_alias_of_alias_raises(self):
        flags = _page_flags()
        with pytest.raises(CommandConstructionError):
            register_alias(flags, "ps", "p2")

    def test_alias_name_collision_raises(self):
        flags = _page_flags()
        flags.add_string("after", "", "Cursor")
        with pytest.raises(CommandConstructionError, match="already defined"):
            register_alias(flags, "after", "ps")

    def test_alias_type_follows_target(self):
        flags = _page_flags()
        with pytest.raises(CliError, match="expected an integer"):
            _parse(flags, "--ps", "many")


class TestRequiredFlags:
    def test_alias_satisfies_required(self):
        flags = _page_flags()
        flags.mark_required("page-size")
        _parse(flags, "--ps", "5")
        flags.check_required()

    def test_missing_required_message(self):
        flags = _page_flags()
        flags.mark_required("page-size")
        with pytest.raises(CliError, match='required flag\\(s\\) "page-size" not set'):
            flags.check_required()

    def test_alias_is_never_required(self):
        flags = _page_flags()
        flags.mark_required("page-size")
        assert flags.lookup("ps").required is False
        assert flags.missing_required() == ["page-size"]

    def test_cannot_require_alias(self):
        flags = _page_flags()
        with pytest.raises(CommandConstructionError):
            flags.mark_required("ps")


class TestFlagOrAliasChanged:
    def test_unset(self):
        assert flag_or_alias_changed(_page_flags(), "page-size") is False

    def test_set_via_alias(self):
        flags = _page_flags()
        flags.lookup("ps").set("9")
        assert flag_or_alias_changed(flags, "page-size") is True

    def test_unknown_name(self):
        assert flag_or_alias_changed(_page_flags(), "nope") is False


# ---------------------------------------------------------------------------
# Booleans
# ---------------------------------------------------------------------------


class TestBoolFlags:
    def _flags(self):
        flags = FlagSet("cmd")
        flags.add_bool("debug", False, "Debug")
        flags.add_bool("yes", False, "Skip prompts", shorthand="y")
        register_alias(flags, "yes", "force")
        return flags

    def test_bare_sets_true(self):
        flags = self._flags()
        _parse(flags, "--debug")
        assert flags.value("debug") is True

    def test_explicit_false_is_changed(self):
        flags = self._flags()
        _parse(flags, "--debug=false")
        assert flags.value("debug") is False
        assert flags.lookup("debug").changed is True

    def test_alias_accepts_literal(self):
        flags = self._flags()
        _parse(flags, "--force=true")
        assert flags.value("yes") is True

    def test_shorthand(self):
        flags = self._flags()
        _parse(flags, "-y")
        assert flags.value("yes") is True

    def test_bad_literal_is_error(self):
        flags = self._flags()
        with pytest.raises(CliError):
            flags.extract(["--debug=maybe"])

    @pytest.mark.parametrize("raw,expected", [("1", True), ("true", True), ("F", False), ("0", False)])
    def test_parse_bool(self, raw, expected):
        assert parse_bool(raw) is expected

    def test_parse_bool_rejects(self):
        with pytest.raises(ValueError):
            parse_bool("yes")


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestFlagSet:
    def test_duplicate_name_raises(self):
        flags = FlagSet("cmd")
        flags.add_string("data")
        with pytest.raises(CommandConstructionError):
            flags.add_string("data")

    def test_duplicate_shorthand_raises(self):
        flags = FlagSet("cmd")
        flags.add_string("output", shorthand="o")
        with pytest.raises(CommandConstructionError):
            flags.add_string("other", shorthand="o")

    def test_choices_enforced(self):
        flags = FlagSet("cmd")
        flags.add_string("color", "auto", choices=("auto", "always", "never"))
        with pytest.raises(CliError, match="expected one of: auto, always, never"):
            flags.lookup("color").set("sometimes")

    def test_explicit_is_sorted_canonical(self):
        flags = FlagSet("cmd")
        flags.add_string("zeta")
        flags.add_string("alpha")
        flags.add_bool("yes")
        register_alias(flags, "yes", "force")
        flags.lookup("zeta").set("z")
        flags.lookup("force").set(True)
        flags.lookup("alpha").set("a")
        assert [f.name for f in flags.explicit()] == ["alpha", "yes", "zeta"]

    def test_value_unknown_raises_key_error(self):
        with pytest.raises(KeyError):
            FlagSet("cmd").value("missing")


class TestExtract:
    def _flags(self):
        flags = FlagSet("global")
        flags.add_string("output", "text", shorthand="o")
        flags.add_bool("debug")
        flags.add_bool("yes", shorthand="y")
        register_alias(flags, "yes", "force")
        return flags

    def test_leaves_unknown_tokens(self):
        flags = self._flags()
        rest = flags.extract(["transfers", "list", "--status", "PAID", "-o", "json"])
        assert rest == ["transfers", "list", "--status", "PAID"]
        assert flags.value("output") == "json"

    def test_inline_values(self):
        flags = self._flags()
        assert flags.extract(["--output=jsonl", "-ojson"]) == []
        assert flags.value("output") == "json"

    def test_alias(self):
        flags = self._flags()
        assert flags.extract(["cancel", "tfr_1", "--force"]) == ["cancel", "tfr_1"]
        assert flags.value("yes") is True

    def test_stops_at_double_dash(self):
        flags = self._flags()
        rest = flags.extract(["api", "--", "--debug"])
        assert rest == ["api", "--", "--debug"]
        assert flags.value("debug") is False

    def test_missing_value(self):
        flags = self._flags()
        with pytest.raises(CliError, match="needs an argument: --output"):
            flags.extract(["--output"])

    def test_combined_short_bool_is_left_alone(self):
        flags = self._flags()
        assert flags.extract(["-yx"]) == ["-yx"]
