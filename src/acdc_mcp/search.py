"""Full-text search over resources.

Builds a SQLite FTS5 index over resource name, content, and keywords, and
serves ranked queries. Ranking is BM25 with per-column weights, so keyword
matches outrank name matches, which outrank body matches.

Query syntax:

- ``*`` matches every document
- bare words match any field, tolerating one edit (``endpont``)
- ``"quoted words"`` match as a phrase
- ``name:word``, ``content:word``, ``keywords:word`` restrict to one field
- ``+word`` is required, ``-word`` is excluded

The index is rebuilt from scratch on every indexing call; there is no
incremental update and no consistency guarantee for searches that run
while a rebuild is in progress.
"""

import asyncio
import logging
import re
import shlex
import shutil
import sqlite3
import tempfile
import threading
from collections.abc import Iterable
from pathlib import Path

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

from .config import SearchSettings
from .errors import SearchError
from .models import FIELD_CONTENT, FIELD_KEYWORDS, FIELD_NAME, UNKNOWN_NAME, SearchDocument, SearchResult

logger = logging.getLogger(__name__)

MATCH_ALL = "*"
END_OF_STREAM = object()
# Column order of the FTS table; bm25() weights follow it
SEARCHABLE_FIELDS = (FIELD_NAME, FIELD_CONTENT, FIELD_KEYWORDS)
INDEX_FILE = "index.db"
FUZZY_DISTANCE = 1
MAX_FUZZY_EXPANSIONS = 20

_WORD_RE = re.compile(r"[^\W_]+")
_FIELD_RE = re.compile(r"^([A-Za-z_]+):(.+)$", re.DOTALL)

_SCHEMA = """
CREATE TABLE documents (
    id INTEGER PRIMARY KEY,
    uri TEXT,
    name TEXT
);
CREATE VIRTUAL TABLE documents_fts USING fts5(
    name, content, keywords,
    content='',
    tokenize='porter unicode61'
);
CREATE VIRTUAL TABLE documents_vocab USING fts5vocab(documents_fts, 'row');
"""

_SEARCH_SQL = """
SELECT d.uri, d.name, -bm25(documents_fts, ?, ?, ?) AS score
FROM documents_fts JOIN documents AS d ON d.id = documents_fts.rowid
WHERE documents_fts MATCH ?
ORDER BY score DESC, d.id
LIMIT ?
"""

_MATCH_ALL_SQL = "SELECT uri, name, 1.0 FROM documents ORDER BY id LIMIT ?"


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def _split_clauses(query: str) -> list[str]:
    lexer = shlex.shlex(query, posix=True)
    lexer.quotes = '"'
    lexer.escape = ""
    lexer.commenters = ""
    lexer.whitespace_split = True
    try:
        return list(lexer)
    except ValueError as e:
        raise SearchError(f"malformed query {query!r}: {e}") from e


class SearchEngine:
    """Weighted multi-field search index."""

    def __init__(self, settings: SearchSettings | None = None):
        self.settings = settings or SearchSettings()
        self._lock = threading.RLock()
        self._conn: sqlite3.Connection | None = None
        self._index_dir: Path | None = None
        self._vocabulary: list[str] = []

    @property
    def is_ready(self) -> bool:
        return self._conn is not None

    @property
    def index_dir(self) -> Path | None:
        """Directory backing the index, when not in memory."""
        return self._index_dir

    # Index lifecycle

    def _teardown(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
            if self._index_dir is not None:
                shutil.rmtree(self._index_dir, ignore_errors=True)
                self._index_dir = None
            self._vocabulary = []

    def _create_index(self) -> None:
        with self._lock:
            self._teardown()
            if self.settings.in_memory:
                database = ":memory:"
            else:
                self._index_dir = Path(tempfile.mkdtemp(prefix="acdc_search_"))
                database = str(self._index_dir / INDEX_FILE)
            self._conn = sqlite3.connect(database, check_same_thread=False)
            self._conn.executescript(_SCHEMA)

    def _write_batch(self, batch: list[tuple[int, SearchDocument]]) -> None:
        with self._lock:
            with self._conn:
                self._conn.executemany(
                    "INSERT INTO documents (id, uri, name) VALUES (?, ?, ?)",
                    [(doc_id, doc.uri, doc.name) for doc_id, doc in batch],
                )
                self._conn.executemany(
                    "INSERT INTO documents_fts (rowid, name, content, keywords) VALUES (?, ?, ?, ?)",
                    [(doc_id, doc.name, doc.content, " ".join(doc.keywords)) for doc_id, doc in batch],
                )

    def _finish(self, count: int) -> int:
        with self._lock:
            self._vocabulary = [row[0] for row in self._conn.execute("SELECT term FROM documents_vocab")]
        logger.info("Indexed %d documents (%d terms)", count, len(self._vocabulary))
        return count

    def index_documents(self, documents: Iterable[SearchDocument]) -> int:
        """Replace the index with ``documents``, written in batches.

        Returns the number of documents indexed.
        """
        self._create_index()
        batch: list[tuple[int, SearchDocument]] = []
        count = 0
        for doc in documents:
            count += 1
            batch.append((count, doc))
            if len(batch) >= self.settings.batch_size:
                self._write_batch(batch)
                batch = []
        if batch:
            self._write_batch(batch)
        return self._finish(count)

    async def index(self, queue: asyncio.Queue) -> int:
        """Replace the index with documents consumed from ``queue``.

        Reads until ``END_OF_STREAM``. Returns the number of documents indexed.
        """
        self._create_index()
        batch: list[tuple[int, SearchDocument]] = []
        count = 0
        while True:
            doc = await queue.get()
            if doc is END_OF_STREAM:
                break
            count += 1
            batch.append((count, doc))
            if len(batch) >= self.settings.batch_size:
                await asyncio.to_thread(self._write_batch, batch)
                batch = []
        if batch:
            await asyncio.to_thread(self._write_batch, batch)
        return self._finish(count)

    def doc_count(self) -> int:
        with self._lock:
            if self._conn is None:
                return 0
            return self._conn.execute("SELECT count(*) FROM documents").fetchone()[0]

    # Queries

    def _expand(self, word: str) -> list[str]:
        """``word`` plus indexed terms within one edit of it."""
        terms = [word]
        for term, _, _ in process.extract(
            word, self._vocabulary, scorer=Levenshtein.distance,
            score_cutoff=FUZZY_DISTANCE, limit=MAX_FUZZY_EXPANSIONS,
        ):
            if term not in terms:
                terms.append(term)
        return terms

    def _clause_expression(self, clause: str) -> str | None:
        field = None
        match = _FIELD_RE.match(clause)
        if match and match.group(1).lower() in SEARCHABLE_FIELDS:
            field, clause = match.group(1).lower(), match.group(2)

        words = _WORD_RE.findall(clause.lower())
        if not words:
            return None

        if len(words) > 1:
            phrases = [_quote(" ".join(words))]
        else:
            phrases = [_quote(term) for term in self._expand(words[0])]
        if field:
            phrases = [f"{field} : {phrase}" for phrase in phrases]
        return "(" + " OR ".join(phrases) + ")"

    def compile_query(self, query: str) -> str | None:
        """Translate a query string into an FTS5 match expression.

        Returns ``None`` when the query has no searchable terms.
        """
        should: list[str] = []
        must: list[str] = []
        must_not: list[str] = []

        for clause in _split_clauses(query):
            target = should
            if len(clause) > 1 and clause[0] in "+-":
                target = must if clause[0] == "+" else must_not
                clause = clause[1:]
            expression = self._clause_expression(clause)
            if expression is not None:
                target.append(expression)

        if must:
            positive = " AND ".join(must)
        elif should:
            positive = " OR ".join(should)
        elif must_not:
            raise SearchError(f"query {query!r} has only excluded terms")
        else:
            return None

        return " NOT ".join([f"({positive})", *must_not])

    def search(self, query: str, limit: int | None = None) -> list[SearchResult]:
        """Ranked results for ``query``, best first.

        Relevance in the snippet is the BM25 score scaled so the best hit is
        1.00. Returns an empty list when nothing has been indexed yet.
        """
        max_results = self.settings.max_results if limit is None else limit
        if max_results < 1:
            return []

        with self._lock:
            if self._conn is None:
                return []

            try:
                if query.strip() == MATCH_ALL:
                    rows = self._conn.execute(_MATCH_ALL_SQL, (max_results,)).fetchall()
                else:
                    expression = self.compile_query(query)
                    if expression is None:
                        return []
                    weights = (self.settings.name_boost, self.settings.content_boost, self.settings.keywords_boost)
                    rows = self._conn.execute(_SEARCH_SQL, (*weights, expression, max_results)).fetchall()
            except sqlite3.Error as e:
                raise SearchError(f"search failed for {query!r}: {e}") from e

        # FTS5 floors IDF for terms in half the corpus or more, so raw BM25 is
        # near zero on small corpora; report relevance relative to the best hit.
        top = max((row[2] for row in rows), default=0.0)
        results = []
        for uri, name, raw_score in rows:
            score = raw_score / top if top > 0 else 0.0
            if not isinstance(uri, str) or not uri:
                logger.warning("Search hit missing URI, dropping it")
                continue
            if not isinstance(name, str) or not name:
                name = UNKNOWN_NAME
            results.append(SearchResult(uri=uri, name=name, snippet=f"{name} (relevance: {score:.2f})"))
        return results

    def close(self) -> None:
        """Release the index and remove any on-disk storage."""
        self._teardown()

    def __enter__(self) -> "SearchEngine":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
