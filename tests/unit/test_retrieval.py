"""Unit tests for the retriever, the in-memory store and the reranker."""

import pytest
from unittest.mock import AsyncMock, Mock, patch

from ragchat.config.settings import ChatSettings
from ragchat.errors import RetrievalError
from ragchat.models.context import Document, ScoredItem
from ragchat.retrieval.reranker import CrossEncoderReranker
from ragchat.retrieval.retriever import Retriever, filter_by_threshold, safe_score, sanitize_workspace_name
from ragchat.retrieval.store import InMemoryEmbeddingStore
from tests.helpers.fakes import FakeReranker, FakeStore


class TestThreshold:

    def test_keeps_strictly_greater_in_order(self):
        items = [ScoredItem("a.py", 0.9), ScoredItem("b.py", 0.2), ScoredItem("c.py", 0.6)]
        assert filter_by_threshold(items, 0.5) == [ScoredItem("a.py", 0.9), ScoredItem("c.py", 0.6)]

    def test_equal_score_dropped(self):
        assert filter_by_threshold([ScoredItem("a.py", 0.5)], 0.5) == []


class TestSafeScore:
    """Test that malformed reranker output discards the batch."""

    @pytest.mark.asyncio
    async def test_valid_scores(self):
        assert await safe_score(FakeReranker({"x": 0.7}), "q", ["x"]) == [0.7]

    @pytest.mark.asyncio
    async def test_length_mismatch(self):
        reranker = FakeReranker(score_fn=lambda q, c: [0.9])
        assert await safe_score(reranker, "q", ["a", "b"]) is None

    @pytest.mark.asyncio
    async def test_none(self):
        reranker = FakeReranker(score_fn=lambda q, c: None)
        assert await safe_score(reranker, "q", ["a"]) is None

    @pytest.mark.asyncio
    async def test_exception(self):
        reranker = Mock()
        reranker.score = AsyncMock(side_effect=RuntimeError("model crashed"))
        assert await safe_score(reranker, "q", ["a"]) is None


class TestRetriever:
    """Test workspace lookups against the two tables."""

    @pytest.fixture
    def store(self):
        return FakeStore({
            "my_app-file-paths": [
                Document("src/auth.ts", "src/auth.ts"),
                Document("src/db.ts", "src/db.ts"),
                Document("docs/intro.md", "docs/intro.md"),
            ],
            "my_app-documents": [
                Document("export function login() {}", "src/auth.ts"),
                Document("export function connect() {}", "src/db.ts"),
                Document("# Intro", "docs/intro.md"),
            ],
        })

    def test_workspace_name_sanitized(self):
        assert sanitize_workspace_name("my-app.v2") == "my_app_v2"
        assert Retriever(FakeStore({}), FakeReranker(), "my app").table_name("documents") == "my_app-documents"

    @pytest.mark.asyncio
    async def test_files_reranked_by_basename(self, store):
        reranker = FakeReranker({"auth.ts": 0.9, "db.ts": 0.2, "intro.md": 0.6})
        retriever = Retriever(store, reranker, "my-app", ChatSettings(rerank_threshold=0.5))

        outcome = await retriever.retrieve("how does login work")

        assert reranker.calls[0]["candidates"] == ["auth.ts", "db.ts", "intro.md"]
        assert outcome.files == [ScoredItem("src/auth.ts", 0.9), ScoredItem("docs/intro.md", 0.6)]

    @pytest.mark.asyncio
    async def test_code_searches_unscoped_then_scoped(self, store):
        reranker = FakeReranker(default=0.8)
        retriever = Retriever(store, reranker, "my-app", ChatSettings(relevant_code_count=5, relevant_file_count=2))

        outcome = await retriever.retrieve("login")

        document_searches = [s for s in store.searches if s["table"] == "my_app-documents"]
        assert [s["k"] for s in document_searches] == [3, 3]
        assert document_searches[0]["file_filter"] is None
        assert document_searches[1]["file_filter"] == ["src/auth.ts", "src/db.ts"]
        # Scoped results repeat unscoped ones and are deduplicated
        assert outcome.code == ["export function login() {}", "export function connect() {}", "# Intro"]
        assert store.embed_calls == 1

    @pytest.mark.asyncio
    async def test_missing_tables(self):
        store = FakeStore({})
        outcome = await Retriever(store, FakeReranker(), "my-app").retrieve("anything")

        assert outcome.files == [] and outcome.code == []
        assert store.embed_calls == 0

    @pytest.mark.asyncio
    async def test_unscored_batch_skipped(self, store):
        reranker = FakeReranker(score_fn=lambda q, c: [1.0])
        outcome = await Retriever(store, reranker, "my-app").retrieve("login")

        assert outcome.files == []
        assert outcome.code == []

    @pytest.mark.asyncio
    async def test_store_error_raises_retrieval_error(self, store):
        store.fail_on = "embed"
        with pytest.raises(RetrievalError) as exc_info:
            await Retriever(store, FakeReranker(), "my-app").retrieve("login")
        assert exc_info.value.operation == "embed"

    @pytest.mark.asyncio
    async def test_empty_embedding(self, store):
        store.embedding = []
        outcome = await Retriever(store, FakeReranker(default=1.0), "my-app").retrieve("login")
        assert outcome.files == [] and outcome.code == []
        assert store.searches == []


class TestInMemoryEmbeddingStore:
    """Test cosine search over named tables."""

    @pytest.mark.asyncio
    async def test_search_orders_by_similarity(self):
        store = InMemoryEmbeddingStore()
        await store.add_documents(
            "ws-documents",
            [Document("alpha", "a.py"), Document("beta", "b.py"), Document("gamma", "c.py")],
            vectors=[[1.0, 0.0], [0.0, 1.0], [0.7, 0.7]],
        )

        results = await store.search([1.0, 0.1], 2, "ws-documents")

        assert [d.content for d in results] == ["alpha", "gamma"]
        assert await store.has_table("ws-documents")
        assert not await store.has_table("ws-file-paths")

    @pytest.mark.asyncio
    async def test_file_filter(self):
        store = InMemoryEmbeddingStore()
        await store.add_documents(
            "ws-documents",
            [Document("alpha", "a.py"), Document("beta", "b.py")],
            vectors=[[1.0, 0.0], [0.0, 1.0]],
        )

        results = await store.search([1.0, 0.0], 5, "ws-documents", file_filter=["b.py"])
        assert [d.path for d in results] == ["b.py"]
        assert await store.search([1.0, 0.0], 5, "ws-documents", file_filter=["z.py"]) == []

    @pytest.mark.asyncio
    async def test_missing_table_is_empty(self):
        assert await InMemoryEmbeddingStore().search([1.0], 3, "nope") == []

    @pytest.mark.asyncio
    async def test_embed_uses_embedder(self):
        embedder = Mock()
        embedder.embed_many = AsyncMock(return_value=[[0.5, 0.5]])
        store = InMemoryEmbeddingStore(embedder)

        assert await store.embed("query") == [0.5, 0.5]
        assert await InMemoryEmbeddingStore().embed("query") is None

    @pytest.mark.asyncio
    async def test_vector_count_mismatch(self):
        with pytest.raises(ValueError):
            await InMemoryEmbeddingStore().add_documents("t", [Document("a", "a.py")], vectors=[[1.0], [2.0]])


class TestCrossEncoderReranker:

    @pytest.mark.asyncio
    async def test_empty_candidates(self):
        assert await CrossEncoderReranker().score("q", []) == []

    @pytest.mark.asyncio
    async def test_scores_in_worker_thread(self):
        reranker = CrossEncoderReranker()
        with patch.object(reranker, "_score_sync", return_value=[0.9, 0.1]) as score_sync:
            assert await reranker.score("q", ("a", "b")) == [0.9, 0.1]
        score_sync.assert_called_once_with("q", ["a", "b"])

    @pytest.mark.asyncio
    async def test_failure_returns_none(self):
        reranker = CrossEncoderReranker(model_id="missing/model")
        with patch.object(reranker, "_load_model", side_effect=OSError("model not found")):
            assert await reranker.score("q", ["a"]) is None
