"""
test_fortran_strategy.py - Unit tests for the stack-based Fortran strategy.

Tests:
    1. A program with an inner ``end do`` closes only at ``end program``.
    2. Unclosed constructs are force-closed on the last line.
    3. Tags are emitted innermost first (close order).
    4. Fixed-form comments, bare ``end`` and lower-cased names.
    5. Inline comments, derived types, ``type is`` and procedure prefixes.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Allow running from repo root without installing the package.
sys.path.insert(0, str(Path(__file__).parent.parent))

from scoping_tags.extraction import slice_code, split_lines
from scoping_tags.fortran_strategy import FortranStrategy, match_opener, strip_inline_comment
from scoping_tags.models import TagKind


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _extract(tmp_path: Path, source: str, name: str = "sample.f90"):
    path = tmp_path / name
    path.write_text(source, encoding="utf-8")
    return FortranStrategy().extract_tags(str(path))


def _summary(tags):
    return [(t.kind, t.name, t.start_line, t.end_line) for t in tags]


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestClosing:

    def test_inner_end_do_does_not_close_program(self, tmp_path):
        source = (
            "program p\n"
            "  integer :: i\n"
            "  do i = 1, 3\n"
            "    print *, i\n"
            "  end do\n"
            "end program p\n"
        )
        tags = _extract(tmp_path, source)
        assert _summary(tags) == [(TagKind.PROGRAM, "p", 1, 6)]
        assert tags[0].code == source.strip()

    def test_mismatched_closer_ignored(self, tmp_path):
        source = (
            "subroutine check(x)\n"
            "  real :: x\n"
            "  if (x > 0) then\n"
            "    x = 0\n"
            "  end if\n"
            "  endif\n"
            "end subroutine check\n"
        )
        tags = _extract(tmp_path, source)
        assert _summary(tags) == [(TagKind.SUBROUTINE, "check", 1, 7)]

    def test_force_close_at_eof(self, tmp_path):
        tags = _extract(tmp_path, "module m\n  integer :: x\n")
        assert _summary(tags) == [(TagKind.MODULE, "m", 1, 2)]

    def test_force_close_innermost_first(self, tmp_path):
        tags = _extract(tmp_path, "module m\nsubroutine s\n  x = 1\n")
        assert _summary(tags) == [
            (TagKind.SUBROUTINE, "s", 2, 3),
            (TagKind.MODULE, "m", 1, 3),
        ]

    def test_lifo_emission_order(self, tmp_path):
        source = (
            "module geometry\n"
            "contains\n"
            "  subroutine area(r, a)\n"
            "    real :: r, a\n"
            "    a = 3.14 * r * r\n"
            "  end subroutine area\n"
            "  function twice(x) result(y)\n"
            "    real :: x, y\n"
            "    y = 2 * x\n"
            "  end function twice\n"
            "end module geometry\n"
        )
        tags = _extract(tmp_path, source)
        assert _summary(tags) == [
            (TagKind.SUBROUTINE, "area", 3, 6),
            (TagKind.FUNCTION, "twice", 7, 10),
            (TagKind.MODULE, "geometry", 1, 11),
        ]


class TestFixedForm:

    def test_bare_end_and_comments(self, tmp_path):
        source = (
            "      PROGRAM MAIN\n"
            "C     A COMMENT THAT SAYS END\n"
            "*     ANOTHER ONE\n"
            "      CALL SUB\n"
            "      END\n"
            "      SUBROUTINE SUB\n"
            "      END\n"
        )
        tags = _extract(tmp_path, source, name="legacy.f")
        assert _summary(tags) == [
            (TagKind.PROGRAM, "main", 1, 5),
            (TagKind.SUBROUTINE, "sub", 6, 7),
        ]

    def test_mixed_case_names_lower_cased(self, tmp_path):
        source = "MODULE Solver\n  TYPE :: GridCell\n  END TYPE GridCell\nEND MODULE Solver\n"
        tags = _extract(tmp_path, source)
        assert _summary(tags) == [
            (TagKind.TYPE, "gridcell", 2, 3),
            (TagKind.MODULE, "solver", 1, 4),
        ]
        assert tags[1].code.startswith("MODULE Solver")

    def test_crlf_and_lone_cr_counted_like_split_lines(self, tmp_path):
        path = tmp_path / "mixed.f90"
        path.write_bytes(b"program p\r\n  x = 1 \r y = 2\r\nend program p\r\n")
        tags = FortranStrategy().extract_tags(str(path))
        assert _summary(tags) == [(TagKind.PROGRAM, "p", 1, 3)]

    def test_uppercase_extension_accepted(self, tmp_path):
        tags = _extract(tmp_path, "program p\nend\n", name="MAIN.F90")
        assert [t.name for t in tags] == ["p"]


class TestOpeners:

    def test_inline_comment_does_not_close(self, tmp_path):
        source = (
            "subroutine foo  ! end\n"
            "  x = 1 ! end subroutine\n"
            "  print *, 'hello ! end'\n"
            "end subroutine foo\n"
        )
        tags = _extract(tmp_path, source)
        assert _summary(tags) == [(TagKind.SUBROUTINE, "foo", 1, 4)]

    def test_derived_types(self, tmp_path):
        source = (
            "module shapes\n"
            "  type :: point\n"
            "    real :: x, y\n"
            "  end type point\n"
            "  type, extends(point) :: point3d\n"
            "    real :: z\n"
            "  end type\n"
            "  type(point) :: origin\n"
            "end module shapes\n"
        )
        tags = _extract(tmp_path, source)
        assert _summary(tags) == [
            (TagKind.TYPE, "point", 2, 4),
            (TagKind.TYPE, "point3d", 5, 7),
            (TagKind.MODULE, "shapes", 1, 9),
        ]

    def test_type_is_guard_is_not_an_opener(self, tmp_path):
        source = (
            "subroutine show(v)\n"
            "  select type (v)\n"
            "  type is (integer)\n"
            "    print *, v\n"
            "  end select\n"
            "end subroutine show\n"
        )
        tags = _extract(tmp_path, source)
        assert _summary(tags) == [(TagKind.SUBROUTINE, "show", 1, 6)]

    @pytest.mark.parametrize("line, expected", [
        ("pure integer function sq(x)", (TagKind.FUNCTION, "sq")),
        ("recursive subroutine walk(n)", (TagKind.SUBROUTINE, "walk")),
        ("real(kind=8) function norm(v)", (TagKind.FUNCTION, "norm")),
        ("type(point) function mid(a, b)", (TagKind.FUNCTION, "mid")),
        ("Module Solver", (TagKind.MODULE, "solver")),
        ("module procedure foo", None),
        ("type(point) :: p", None),
        ("function_count = 3", None),
    ])
    def test_match_opener(self, line, expected):
        assert match_opener(line) == expected

    def test_strip_inline_comment_respects_quotes(self):
        assert strip_inline_comment("x = 'a!b' ! note") == "x = 'a!b' "
        assert strip_inline_comment('y = "!" ') == 'y = "!" '


class TestFileHandling:

    def test_unsupported_extension(self, tmp_path):
        assert _extract(tmp_path, "program p\nend program p\n", name="p.ts") == []

    def test_undeclared_kind_rejected(self):
        with pytest.raises(ValueError):
            FortranStrategy().make_tag(TagKind.CLASS, "X", 1, 1, ["class X"])

    def test_code_matches_line_slice(self, tmp_path):
        source = (
            "module m\n"
            "contains\n"
            "  subroutine s()\n"
            "  end subroutine s\n"
            "  function f()\n"
        )
        tags = _extract(tmp_path, source)
        lines = split_lines(source)
        assert len(tags) == 3
        for tag in tags:
            assert tag.code == slice_code(lines, tag.start_line, tag.end_line)
