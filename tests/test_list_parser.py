"""Tests for the repository list parser"""
import pytest

from comp_repos.exceptions import ListFileNotFoundError, ListSyntaxError
from comp_repos.models.record import ParseDiagnostic, RecordFlag, RecordKind
from comp_repos.services.list_parser import (
    find_list_file,
    iter_records,
    parse_line,
    parse_lines,
    parse_list_file,
    remote_url_from_spec,
    repo_name_from_spec,
    split_repo_spec,
    tokenize,
)


class TestTokenize:
    """Test the list-file tokenizer."""

    def test_whitespace_separated(self):
        assert tokenize("owner/repo@dev   target\t-a") == ["owner/repo@dev", "target", "-a"]

    def test_blank_and_comment_lines(self):
        assert tokenize("") == []
        assert tokenize("   ") == []
        assert tokenize("# a comment") == []
        assert tokenize("   # indented comment") == []

    def test_trailing_comment(self):
        assert tokenize("owner/repo # main analysis repo") == ["owner/repo"]

    def test_hash_inside_token_is_kept(self):
        assert tokenize("owner/repo#1 dir") == ["owner/repo#1", "dir"]

    def test_double_quotes_group_spaces(self):
        assert tokenize('@dev "My Dir"') == ["@dev", "My Dir"]

    def test_double_quotes_honour_escapes(self):
        assert tokenize(r'@dev "say \"hi\""') == ["@dev", 'say "hi"']

    def test_single_quotes_are_literal(self):
        assert tokenize(r"@dev 'a\b c'") == ["@dev", r"a\b c"]

    def test_backslash_escapes_space(self):
        assert tokenize(r"@dev My\ Dir") == ["@dev", "My Dir"]

    def test_quoted_hash_is_not_a_comment(self):
        assert tokenize("@dev '#dir'") == ["@dev", "#dir"]

    def test_empty_quotes_make_empty_token(self):
        assert tokenize("@dev ''") == ["@dev", ""]

    def test_crlf_is_stripped(self):
        assert tokenize("owner/repo\r\n") == ["owner/repo"]

    def test_unterminated_quote(self):
        with pytest.raises(ListSyntaxError) as exc_info:
            tokenize('@dev "unterminated', line_number=7)
        assert exc_info.value.line_number == 7
        assert "unterminated" in str(exc_info.value)


class TestRepoSpec:
    """Test splitting and naming of repository specs."""

    @pytest.mark.parametrize(
        "spec,expected",
        [
            ("owner/repo", ("owner/repo", None)),
            ("owner/repo@dev", ("owner/repo", "dev")),
            ("owner/repo@feature/x", ("owner/repo", "feature/x")),
            ("https://github.com/o/r@dev", ("https://github.com/o/r", "dev")),
            ("https://user@host.org/o/r@dev", ("https://user@host.org/o/r", "dev")),
            ("https://user@host.org/o/r", ("https://user@host.org/o/r", None)),
            ("git@github.com:o/r.git@dev", ("git@github.com:o/r.git", "dev")),
            ("git@github.com:o/r", ("git@github.com:o/r", None)),
        ],
    )
    def test_split_repo_spec(self, spec, expected):
        assert split_repo_spec(spec) == expected

    @pytest.mark.parametrize(
        "spec,name",
        [
            ("owner/repo", "repo"),
            ("owner/repo.git", "repo"),
            ("https://github.com/o/r/", "r"),
            ("git@github.com:o/r.git", "r"),
            ("repo", "repo"),
        ],
    )
    def test_repo_name_from_spec(self, spec, name):
        assert repo_name_from_spec(spec) == name

    def test_remote_url_from_spec(self):
        assert remote_url_from_spec("o/r", "https://github.com/") == "https://github.com/o/r"
        assert remote_url_from_spec("https://gitlab.com/o/r", "https://github.com") == "https://gitlab.com/o/r"
        assert remote_url_from_spec("git@github.com:o/r", "https://github.com") == "git@github.com:o/r"
        assert remote_url_from_spec("/srv/git/r", "https://github.com") == "/srv/git/r"


class TestParseLine:
    """Test turning lines into records."""

    def test_plain_clone(self):
        record = parse_line("SATVILab/DataTidyACSClinical", 1)
        assert record.kind is RecordKind.CLONE
        assert record.repo_spec == "SATVILab/DataTidyACSClinical"
        assert record.branch is None
        assert record.target_dir is None
        assert record.flags == frozenset()
        assert record.line_number == 1

    def test_clone_with_branch_target_and_flag(self):
        record = parse_line("SATVILab/Proj2@feature ./Custom --all-branches", 3)
        assert record.repo_spec == "SATVILab/Proj2"
        assert record.branch == "feature"
        assert record.target_dir == "./Custom"
        assert record.all_branches
        assert not record.no_worktree

    def test_worktree_line(self):
        record = parse_line("@dev", 2)
        assert record.kind is RecordKind.WORKTREE
        assert record.repo_spec is None
        assert record.branch == "dev"
        assert record.is_worktree

    def test_worktree_no_worktree_flag(self):
        record = parse_line("@release rel-dir -n", 4)
        assert record.target_dir == "rel-dir"
        assert RecordFlag.NO_WORKTREE in record.flags

    def test_flag_before_target(self):
        record = parse_line("o/r -a custom")
        assert record.target_dir == "custom"
        assert record.all_branches

    def test_unknown_option_is_ignored(self):
        record = parse_line("o/r --shallow custom")
        assert record.target_dir == "custom"
        assert record.flags == frozenset()

    def test_extra_positional_is_ignored(self):
        record = parse_line("o/r first second")
        assert record.target_dir == "first"

    def test_blank_line_returns_none(self):
        assert parse_line("   ") is None
        assert parse_line("# comment") is None

    @pytest.mark.parametrize("line", ["@", "@ dir", "o/r@", "@dev 'oops"])
    def test_malformed_lines(self, line):
        with pytest.raises(ListSyntaxError):
            parse_line(line, 5)

    def test_str_is_list_file_form(self):
        record = parse_line("o/r@b 'My Dir' -a")
        assert str(record) == "o/r@b 'My Dir' --all-branches"
        assert parse_line(str(record)).target_dir == "My Dir"


class TestParseLines:
    """Test parsing whole files."""

    def test_malformed_line_becomes_diagnostic(self):
        parsed = parse_lines(["o/a", "@", "", "# note", "@dev"])
        assert [r.line_number for r in parsed.records] == [1, 5]
        assert len(parsed.diagnostics) == 1
        assert parsed.diagnostics[0].line_number == 2
        assert "missing branch" in parsed.diagnostics[0].reason

    def test_iter_records_is_lazy(self):
        items = iter_records(iter(["o/a", "@"]))
        assert next(items).repo_spec == "o/a"
        assert isinstance(next(items), ParseDiagnostic)
        with pytest.raises(StopIteration):
            next(items)

    def test_parse_list_file_with_bom_and_crlf(self, temp_dir):
        path = temp_dir / "repos.list"
        path.write_bytes("\ufeffo/a\r\n@dev\r\n".encode("utf-8"))
        parsed = parse_list_file(path)
        assert parsed.path == path
        assert [str(r) for r in parsed.records] == ["o/a", "@dev"]
        assert parsed.records[1].raw == "@dev"

    def test_parse_list_file_missing(self, temp_dir):
        with pytest.raises(ListFileNotFoundError):
            parse_list_file(temp_dir / "repos.list")


class TestFindListFile:
    """Test list file lookup."""

    def test_default_name(self, temp_dir):
        (temp_dir / "repos.list").write_text("")
        assert find_list_file(temp_dir) == temp_dir / "repos.list"

    def test_legacy_name_when_only_one(self, temp_dir):
        (temp_dir / "repos-to-clone.list").write_text("")
        assert find_list_file(temp_dir) == temp_dir / "repos-to-clone.list"

    def test_default_wins_over_legacy(self, temp_dir):
        (temp_dir / "repos.list").write_text("")
        (temp_dir / "repos-to-clone.list").write_text("")
        assert find_list_file(temp_dir) == temp_dir / "repos.list"

    def test_explicit_file(self, temp_dir):
        sub = temp_dir / "cfg"
        sub.mkdir()
        (sub / "mine.list").write_text("")
        assert find_list_file(temp_dir, "cfg/mine.list") == sub / "mine.list"

    def test_missing(self, temp_dir):
        with pytest.raises(ListFileNotFoundError, match="not found"):
            find_list_file(temp_dir)
