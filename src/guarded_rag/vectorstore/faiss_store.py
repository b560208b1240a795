"""FAISS index of chunk embeddings, persisted next to a chunk-id mapping."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path

import faiss
import numpy as np

from guarded_rag.exceptions import ConfigurationError
from guarded_rag.observability.logger import get_logger

logger = get_logger("faiss_store")

INDEX_FILE = "index.faiss"
MAPPING_FILE = "id_mapping.json"


class FAISSVectorStore:
    """Inner-product index over L2-normalized vectors, i.e. cosine similarity.

    Chunk ids map to stable int64 ids; adding a chunk id again replaces its
    vector instead of duplicating it, so re-seeding is idempotent.
    """

    def __init__(self, dimensions: int, index_path: str | None = None) -> None:
        self._dimensions = dimensions
        self._index_path = index_path
        self._index = faiss.IndexIDMap(faiss.IndexFlatIP(dimensions))
        self._id_to_chunk_id: dict[int, str] = {}
        self._chunk_id_to_int: dict[str, int] = {}
        self._next_id = 0
        self._write_lock = asyncio.Lock()

        if index_path:
            self._try_load(index_path)

    def _try_load(self, path: str) -> None:
        index_file = os.path.join(path, INDEX_FILE)
        mapping_file = os.path.join(path, MAPPING_FILE)
        if not (os.path.exists(index_file) and os.path.exists(mapping_file)):
            return
        index = faiss.read_index(index_file)
        if index.d != self._dimensions:
            raise ConfigurationError(
                f"Index at {path} has {index.d} dimensions, expected {self._dimensions}",
                details={"path": path},
            )
        with open(mapping_file) as f:
            data = json.load(f)
        self._index = index
        self._id_to_chunk_id = {int(k): v for k, v in data["id_to_chunk_id"].items()}
        self._chunk_id_to_int = data["chunk_id_to_int"]
        self._next_id = data["next_id"]
        logger.info("faiss_loaded", size=self._index.ntotal, path=path)

    def add(self, chunk_ids: list[str], embeddings: np.ndarray) -> None:
        if len(chunk_ids) == 0:
            return
        vectors = np.ascontiguousarray(embeddings, dtype=np.float32).reshape(len(chunk_ids), -1)
        if vectors.shape[1] != self._dimensions:
            raise ConfigurationError(
                f"Embedding width {vectors.shape[1]} does not match index width {self._dimensions}"
            )
        faiss.normalize_L2(vectors)

        replaced = [self._chunk_id_to_int[cid] for cid in chunk_ids if cid in self._chunk_id_to_int]
        if replaced:
            self._index.remove_ids(np.array(replaced, dtype=np.int64))
        int_ids = [self._int_id(cid) for cid in chunk_ids]
        self._index.add_with_ids(vectors, np.array(int_ids, dtype=np.int64))
        logger.info(
            "faiss_added", count=len(chunk_ids), replaced=len(replaced), total=self._index.ntotal
        )

    async def add_safe(self, chunk_ids: list[str], embeddings: np.ndarray) -> None:
        async with self._write_lock:
            await asyncio.to_thread(self.add, chunk_ids, embeddings)

    def search(self, query_embedding: np.ndarray, top_k: int) -> list[tuple[str, float]]:
        """Best-first (chunk_id, cosine score) pairs; empty when nothing is indexed."""
        if self._index.ntotal == 0 or top_k <= 0:
            return []
        query = np.ascontiguousarray(query_embedding, dtype=np.float32).reshape(1, -1)
        faiss.normalize_L2(query)
        scores, indices = self._index.search(query, min(top_k, self._index.ntotal))
        return [
            (self._id_to_chunk_id[int(idx)], float(score))
            for idx, score in zip(indices[0], scores[0])
            if int(idx) in self._id_to_chunk_id
        ]

    def save(self, path: str | None = None) -> None:
        path = path or self._index_path
        if not path:
            return
        Path(path).mkdir(parents=True, exist_ok=True)
        faiss.write_index(self._index, os.path.join(path, INDEX_FILE))
        with open(os.path.join(path, MAPPING_FILE), "w") as f:
            json.dump(
                {
                    "id_to_chunk_id": self._id_to_chunk_id,
                    "chunk_id_to_int": self._chunk_id_to_int,
                    "next_id": self._next_id,
                },
                f,
            )
        logger.info("faiss_saved", path=path, size=self._index.ntotal)

    @property
    def size(self) -> int:
        return self._index.ntotal

    def _int_id(self, chunk_id: str) -> int:
        existing = self._chunk_id_to_int.get(chunk_id)
        if existing is not None:
            return existing
        int_id = self._next_id
        self._id_to_chunk_id[int_id] = chunk_id
        self._chunk_id_to_int[chunk_id] = int_id
        self._next_id += 1
        return int_id
