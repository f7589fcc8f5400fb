"""Missing and misspelled standard-library header detection."""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..parsers.base import FunctionCall, IncludeDirective, ParseResult
from .base import Category, Issue, make_issue


def _table(groups: Dict[str, Sequence[str]]) -> Dict[str, Tuple[str, ...]]:
    table: Dict[str, Tuple[str, ...]] = {}
    for header, functions in groups.items():
        for function in functions:
            table[function] = table.get(function, ()) + (header,)
    return table


# Standard-library function -> headers that declare it (any one suffices)
STANDARD_LIBRARY_FUNCTIONS = _table({
    "stdio.h": (
        "printf", "scanf", "fprintf", "fscanf", "sprintf", "sscanf", "fopen", "fclose",
        "fread", "fwrite", "fgets", "fputs", "getchar", "putchar", "fgetc", "fputc",
        "fseek", "ftell", "rewind", "feof", "ferror", "perror",
    ),
    "stdlib.h": (
        "malloc", "calloc", "realloc", "free", "exit", "abort", "atexit", "atoi",
        "atof", "atol", "strtol", "strtod", "rand", "srand", "system", "getenv",
        "qsort", "bsearch", "abs", "labs", "div", "ldiv",
    ),
    "string.h": (
        "strlen", "strcpy", "strncpy", "strcat", "strncat", "strcmp", "strncmp",
        "strchr", "strrchr", "strstr", "strtok", "memcpy", "memmove", "memcmp",
        "memchr", "memset",
    ),
    "math.h": (
        "sin", "cos", "tan", "asin", "acos", "atan", "atan2", "sinh", "cosh", "tanh",
        "exp", "log", "log10", "pow", "sqrt", "ceil", "floor", "fabs", "ldexp",
        "frexp", "modf", "fmod",
    ),
    "ctype.h": (
        "isalpha", "isdigit", "isalnum", "isspace", "islower", "isupper", "isprint",
        "iscntrl", "ispunct", "isxdigit", "tolower", "toupper",
    ),
    "time.h": (
        "time", "clock", "ctime", "asctime", "localtime", "gmtime", "mktime",
        "strftime", "difftime",
    ),
    "assert.h": ("assert",),
    "stdarg.h": ("va_start", "va_arg", "va_end", "va_copy"),
    "setjmp.h": ("setjmp", "longjmp"),
    "signal.h": ("signal", "raise"),
    "locale.h": ("setlocale", "localeconv"),
})

# Order matters: suggestions break ties by position in this tuple
STANDARD_HEADERS = (
    "stdio.h", "stdlib.h", "string.h", "math.h", "ctype.h",
    "time.h", "assert.h", "limits.h", "float.h", "stdarg.h",
    "setjmp.h", "signal.h", "errno.h", "locale.h", "stddef.h",
    "stdint.h", "stdbool.h", "inttypes.h", "wchar.h", "wctype.h",
    "iso646.h", "complex.h", "fenv.h", "tgmath.h",
)

MAX_SUGGESTION_DISTANCE = 2


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance with unit costs."""
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], current[j - 1], previous[j]) + 1)
        previous = current
    return previous[-1]


def suggest_header(header_name: str, candidates: Iterable[str] = STANDARD_HEADERS) -> Optional[str]:
    """Closest standard header within MAX_SUGGESTION_DISTANCE, first one wins ties."""
    lower = header_name.lower()
    best_match = None
    best_distance = MAX_SUGGESTION_DISTANCE + 1
    for candidate in candidates:
        distance = levenshtein_distance(lower, candidate.lower())
        if distance < best_distance:
            best_distance = distance
            best_match = candidate
    return best_match


def check_missing_headers(
    file_path: str,
    calls: Iterable[FunctionCall],
    includes: Iterable[IncludeDirective],
    table: Optional[Dict[str, Tuple[str, ...]]] = None,
) -> List[Issue]:
    """One Header issue per call to a tabulated function with no acceptable include."""
    if table is None:
        table = STANDARD_LIBRARY_FUNCTIONS
    included = {include.header_name for include in includes}
    issues = []

    for call in calls:
        required_headers = table.get(call.callee_name)
        if not required_headers:
            continue
        if any(header in included for header in required_headers):
            continue
        issues.append(make_issue(
            file_path, call.position.row, Category.HEADER,
            f"Function '{call.callee_name}' requires header: {' or '.join(required_headers)}",
        ))

    return issues


def check_header_spelling(file_path: str, includes: Iterable[IncludeDirective]) -> List[Issue]:
    """Flag angle-bracket includes that are not standard headers."""
    known = set(STANDARD_HEADERS)
    issues = []

    for include in includes:
        if not include.is_system_header or include.header_name in known:
            continue
        message = f"Suspicious header name: {include.header_name}"
        suggestion = suggest_header(include.header_name)
        if suggestion:
            message += f", did you mean {suggestion}?"
        issues.append(make_issue(file_path, include.position.row, Category.HEADER_SPELLING, message))

    return issues


class LibraryDetector:
    """Header checks over a parsed file."""

    def analyze(self, file_path: str, result: ParseResult) -> List[Issue]:
        return check_missing_headers(file_path, result.function_calls, result.includes)

    def check_header_spelling(self, file_path: str, result: ParseResult) -> List[Issue]:
        return check_header_spelling(file_path, result.includes)
