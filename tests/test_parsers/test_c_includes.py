"""Tests for C include extraction."""

import pytest
from cscan.parsers.c import CParser


class TestCIncludeExtraction:
    """Test include extraction from C files."""

    @pytest.fixture
    def parser(self):
        """Create a C parser instance."""
        return CParser()

    def test_extract_system_include(self, parser):
        """Test extracting a system include."""
        tree = parser.parse("#include <stdio.h>\n")
        includes = parser.extract_includes(tree)
        assert len(includes) == 1
        assert includes[0].header_name == "stdio.h"
        assert includes[0].is_system_header is True

    def test_extract_local_include(self, parser):
        """Test extracting a local include."""
        tree = parser.parse('#include "service.h"\n')
        includes = parser.extract_includes(tree)
        assert len(includes) == 1
        assert includes[0].header_name == "service.h"
        assert includes[0].is_system_header is False

    def test_extract_multiple_includes(self, parser):
        """Test extracting multiple includes in source order."""
        tree = parser.parse("""#include <stdio.h>
#include <stdlib.h>
#include "service.h"
#include "user.h"
""")
        includes = parser.extract_includes(tree)
        assert [inc.header_name for inc in includes] == ["stdio.h", "stdlib.h", "service.h", "user.h"]
        assert [inc.position.row for inc in includes] == [0, 1, 2, 3]

        system_includes = [inc for inc in includes if inc.is_system_header]
        assert len(system_includes) == 2

    def test_include_inside_conditional(self, parser):
        """Includes nested in #ifdef blocks are still found."""
        tree = parser.parse("""#ifdef DEBUG
#include <assert.h>
#endif
""")
        includes = parser.extract_includes(tree)
        assert len(includes) == 1
        assert includes[0].header_name == "assert.h"
        assert includes[0].position.row == 1

    def test_parse_source_collects_includes(self, parser, tmp_path):
        """Test the file-level entry point."""
        test_file = tmp_path / "main.c"
        test_file.write_text("#include <stdio.h>\nint main(void) { return 0; }\n")

        result = parser.parse_source(str(test_file), test_file.read_text())
        assert result.file_path == str(test_file)
        assert [inc.header_name for inc in result.includes] == ["stdio.h"]
