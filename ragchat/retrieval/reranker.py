import asyncio
from threading import Lock
from typing import Any, List, Optional, Sequence, Tuple

from ..observability.logging import ChatLogger
from .base import Reranker

logger = ChatLogger("reranker")

DEFAULT_RERANKER_MODEL = "cross-encoder/ms-marco-MiniLM-L-6-v2"


class CrossEncoderReranker(Reranker):
    """Local HuggingFace cross-encoder scoring (query, candidate) pairs.

    Scores are sigmoid-scaled logits, so a threshold around 0.5 separates
    relevant from irrelevant candidates.
    """

    def __init__(self, model_id: str = DEFAULT_RERANKER_MODEL, max_length: int = 512, batch_size: int = 32):
        self.model_id = model_id
        self.max_length = max_length
        self.batch_size = batch_size
        self._model: Optional[Tuple[Any, Any, str]] = None
        self._loading_lock = Lock()

    def _load_model(self) -> Tuple[Any, Any, str]:
        """Load tokenizer and model into memory (thread-safe)."""
        with self._loading_lock:
            if self._model is not None:
                return self._model

            import torch
            from transformers import AutoModelForSequenceClassification, AutoTokenizer

            device = "cuda" if torch.cuda.is_available() else "cpu"
            tokenizer = AutoTokenizer.from_pretrained(self.model_id)
            model = AutoModelForSequenceClassification.from_pretrained(self.model_id)
            model.to(device)
            model.eval()

            logger.info("Loaded reranker model", model=self.model_id, device=device)
            self._model = (tokenizer, model, device)
            return self._model

    def _score_sync(self, query: str, candidates: List[str]) -> List[float]:
        import torch

        tokenizer, model, device = self._load_model()
        scores: List[float] = []
        for start in range(0, len(candidates), self.batch_size):
            batch = candidates[start:start + self.batch_size]
            inputs = tokenizer(
                [query] * len(batch),
                batch,
                padding=True,
                truncation=True,
                max_length=self.max_length,
                return_tensors="pt"
            ).to(device)
            with torch.no_grad():
                logits = model(**inputs).logits
            # Single-logit heads score relevance directly
            if logits.shape[-1] > 1:
                logits = logits[:, -1]
            else:
                logits = logits.squeeze(-1)
            scores.extend(torch.sigmoid(logits).float().cpu().tolist())
        return scores

    async def score(self, query: str, candidates: Sequence[str]) -> Optional[List[float]]:
        if not candidates:
            return []
        try:
            return await asyncio.to_thread(self._score_sync, query, list(candidates))
        except Exception as e:
            logger.error("Reranking failed", model=self.model_id, candidates=len(candidates), error=e)
            return None
