"""
SQL Guard
=========

Pulls a single statement out of model text, enforces the read-only
allow-list and injects a row limit.
"""

import re

import structlog

from feza_assistant.config import AssistantConfig
from feza_assistant.models import ErrorKind, Outcome, SqlCandidate, ValidatedSql
from feza_assistant.verifiers.base import VerificationChain

logger = structlog.get_logger(__name__)

CODE_FENCE = re.compile(r"```[ \t]*(?:sql)?[ \t]*", re.IGNORECASE)
MARKER = re.compile(r"(?<![\w])SQL:\s*([^\n]*)", re.IGNORECASE)
SELECT_AT_LINE_START = re.compile(r"^[ \t]*(SELECT\s.*)", re.IGNORECASE | re.MULTILINE | re.DOTALL)
SELECT_ANYWHERE = re.compile(r"\b(SELECT\s.*)", re.IGNORECASE | re.DOTALL)
PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n")
# Only a LIMIT closing the statement caps the outer result set
FINAL_LIMIT = re.compile(r"\bLIMIT\s+\d+(?:\s*(?:,|OFFSET)\s*\d+)?\s*$", re.IGNORECASE)
COMMENT_START = re.compile(r"--|#|/\*")
# Quoted text is matched whole so comment markers inside it survive
COMMENT_OR_QUOTED = re.compile(
    r"'(?:''|\\.|[^'\\])*'?"
    r'|"(?:""|\\.|[^"\\])*"?'
    r"|`[^`]*`?"
    r"|(?P<line>--[^\n]*|#[^\n]*)"
    r"|(?P<block>/\*.*?(?:\*/|\Z))",
    re.DOTALL,
)


def strip_code_fences(text: str) -> str:
    """Remove Markdown code-fence markers, keeping their content."""
    return CODE_FENCE.sub("", text)


def _drop_comment(match: re.Match) -> str:
    if match.group("line") is not None:
        return ""
    if match.group("block") is not None:
        return " "
    return match.group(0)


def strip_sql_comments(sql: str) -> str:
    """
    Remove ``--``, ``#`` and ``/* */`` comments that sit outside quoted text.

    Line comments keep their newline and block comments become a single
    space, so tokens on either side stay apart. An unterminated block
    comment runs to the end of the text.
    """
    return COMMENT_OR_QUOTED.sub(_drop_comment, sql)


def ensure_limit(sql: str, default_limit: int) -> str:
    """
    Append ``LIMIT default_limit`` unless the statement already ends in one.

    A ``LIMIT`` inside a subquery or a string literal does not count. Comments
    are dropped first so the appended clause cannot land inside one.
    Idempotent: a statement that already carries a final limit is returned
    without its comments but otherwise unchanged.
    """
    base = strip_sql_comments(sql).rstrip().rstrip(";").rstrip()
    if FINAL_LIMIT.search(base):
        return base
    # A comment opener can remain inside a literal; keep the clause on its own line
    separator = "\n" if COMMENT_START.search(base) else " "
    return f"{base}{separator}LIMIT {default_limit}"


class SqlExtractor:
    """Finds the candidate statement inside generated text."""

    def extract(self, raw_text: str) -> Outcome[SqlCandidate]:
        """
        Extract a candidate statement.

        A ``SQL:`` marker wins and yields the rest of its line. Otherwise the
        first span starting with ``SELECT`` is taken, up to a paragraph break
        or the end of the text. In both cases the statement ends at the first
        semicolon; whatever follows it is kept as ``trailing``. Comments are
        dropped from both.
        """
        text = strip_code_fences(raw_text)

        span, source = None, "select"
        marker = MARKER.search(text)
        if marker and marker.group(1).strip():
            span, source = marker.group(1), "marker"
        else:
            select = SELECT_AT_LINE_START.search(text) or SELECT_ANYWHERE.search(text)
            if select:
                span = PARAGRAPH_BREAK.split(select.group(1), maxsplit=1)[0]

        if span is None:
            return Outcome.failure(ErrorKind.NO_SQL_FOUND, "No SQL statement found in model output")

        statement, _, trailing = strip_sql_comments(span).partition(";")
        statement = statement.strip().strip("`").strip()
        if not statement:
            return Outcome.failure(ErrorKind.NO_SQL_FOUND, "Empty SQL statement in model output")

        return Outcome.success(
            SqlCandidate(text=statement, trailing=trailing.strip(), source=source)
        )


class SqlGuard:
    """Extraction, allow-list validation and LIMIT injection in one step."""

    def __init__(
        self,
        config: AssistantConfig | None = None,
        extractor: SqlExtractor | None = None,
        chain: VerificationChain | None = None,
    ) -> None:
        self.config = config or AssistantConfig()
        self.extractor = extractor or SqlExtractor()
        self.chain = chain or VerificationChain()

    def extract_and_validate(self, raw_text: str) -> Outcome[ValidatedSql]:
        """
        Turn raw model text into executable read-only SQL.

        Args:
            raw_text: Model output classified as a database query

        Returns:
            Outcome with ``ValidatedSql``, or a ``no_sql_found``,
            ``not_select_only`` or ``forbidden_keyword`` failure
        """
        extracted = self.extractor.extract(raw_text)
        if not extracted.ok:
            return Outcome(error=extracted.error)

        candidate = extracted.value
        passed, results = self.chain.run(candidate)
        if not passed:
            failed = results[-1]
            logger.warning(
                "sql_blocked",
                verifier=failed.verifier_name,
                reason=failed.message,
                sql=candidate.text,
            )
            return Outcome.failure(
                failed.error_kind or ErrorKind.NOT_SELECT_ONLY,
                failed.message,
                verifier=failed.verifier_name,
                sql=candidate.text,
                **failed.details,
            )

        return Outcome.success(
            ValidatedSql(ensure_limit(candidate.text, self.config.default_row_limit))
        )
