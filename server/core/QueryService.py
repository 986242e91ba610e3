"""Query service — semantic search over a user's journal entries.

Embeds the query text, lets the store rank the owner's embedded journals by
cosine distance and turns the hits into scored result items.
"""

import math

from shared.clients.inference.InferenceClientInterface import InferenceClientInterface
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.validation import require_text, require_uuid
from shared.models.search import (
    DEFAULT_SEARCH_LIMIT,
    MAX_SEARCH_LIMIT,
    SearchHit,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
)


def clamp_limit(limit: int | None, default: int, maximum: int) -> int:
    """Clamp a requested result count into [1, maximum], using default when unset."""
    if limit is None:
        return default
    return max(1, min(int(limit), maximum))


class QueryService:
    """Orchestrates embedding, vector retrieval, and result assembly for journal search."""

    def __init__(
        self,
        helper_config: HelperConfig,
        store_client: StoreClientInterface,
        inference_client: InferenceClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store = store_client
        self._inference = inference_client

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_search(self, request: SearchRequest) -> SearchResponse:
        """Execute a natural language query against the user's journal index.

        Args:
            request (SearchRequest): The incoming query with text, user_id, and limit.

        Returns:
            SearchResponse: Ranked list of matching journal entries, best match first.

        Raises:
            ValidationError: If user_id or query is empty or malformed.
            ProviderError: If embedding the query fails.
            StorageError: If the ranked scan fails.
        """
        user_id = require_uuid(request.user_id, "userId")
        query = require_text(request.query, "query")
        limit = clamp_limit(request.limit, default=DEFAULT_SEARCH_LIMIT, maximum=MAX_SEARCH_LIMIT)

        self.logging.info("Executing query — user_id=%s query=%r limit=%d", user_id, query[:80], limit)

        vector = await self._inference.do_embed(query)
        hits = await self._store.do_search_embeddings(user_id=user_id, query_vector=vector, limit=limit)
        items = self._build_result_items(hits)

        self.logging.info("Query complete — user_id=%s results=%d", user_id, len(items))
        return SearchResponse(query=query, results=items, total=len(items))

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _build_result_items(self, hits: list[SearchHit]) -> list[SearchResultItem]:
        """Convert ranked store hits into result items with score = 1 - cosine distance.

        Hits without a defined distance (zero-magnitude vectors) are dropped.
        """
        items: list[SearchResultItem] = []
        for hit in hits:
            if math.isnan(hit.distance):
                self.logging.debug("Dropping journal id=%s from results: undefined distance", hit.journal.id)
                continue
            items.append(
                SearchResultItem(
                    journal_id=hit.journal.id,
                    title=hit.journal.title,
                    content=hit.journal.content,
                    mood_tag=hit.journal.mood_tag,
                    created_at=hit.journal.created_at,
                    score=1.0 - hit.distance,
                )
            )
        return items
