"""Work Item Tracking API client"""
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from .base import BaseAPIClient

logger = logging.getLogger(__name__)

# Server side limit for the batch work items endpoint
MAX_BATCH_IDS = 200


class WorkItemTrackingClient(BaseAPIClient):
    """Client for work items, their revisions, WIQL queries and patches"""

    service_name = "WorkItemTracking"

    def __init__(self, base_url: str, api_key: Optional[str] = None,
                 credentials: Optional[Tuple[str, str]] = None,
                 api_version: str = "5.0", timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(base_url, api_key, credentials, api_version, timeout, transport)

    async def get_work_item(self, work_item_id: int, fields: List[str]) -> Optional[Dict]:
        """Get one work item with the given fields, or None if it does not exist"""
        response = await self._request(
            'GET', f"_apis/wit/workitems/{work_item_id}", params={'fields': ",".join(fields)}
        )
        if response.status_code == 404:
            logger.debug(f"Work item {work_item_id} not found")
            return None
        self._raise_for_status(response)
        return response.json()

    async def get_work_items(self, work_item_ids: List[int], fields: List[str]) -> List[Dict]:
        """Get several work items, in the order of the given ids"""
        items = []
        for start in range(0, len(work_item_ids), MAX_BATCH_IDS):
            batch = work_item_ids[start:start + MAX_BATCH_IDS]
            data = await self._get_json("_apis/wit/workitems", params={
                'ids': ",".join(str(i) for i in batch),
                'fields': ",".join(fields)
            })
            items.extend(data.get('value', []))
        return items

    async def get_revisions(self, work_item_id: int, page_size: int = 100) -> Optional[List[Dict]]:
        """Get every revision of a work item, or None if it does not exist"""
        revisions = []
        skip = 0

        while True:
            response = await self._request(
                'GET', f"_apis/wit/workitems/{work_item_id}/revisions",
                params={'$top': page_size, '$skip': skip}
            )
            if response.status_code == 404:
                logger.debug(f"Work item {work_item_id} not found")
                return None
            self._raise_for_status(response)

            page = response.json().get('value', [])
            revisions.extend(page)

            if len(page) < page_size:
                break
            skip += page_size

        return revisions

    async def query_by_wiql(self, query: str, project_id: str,
                            team_id: Optional[str] = None) -> List[Dict]:
        """Run a WIQL query in a project (and optionally team) context"""
        context = f"{project_id}/{team_id}" if team_id else project_id
        response = await self._request('POST', f"{context}/_apis/wit/wiql", json={'query': query})
        self._raise_for_status(response)
        return response.json().get('workItems', [])

    async def update_work_item(self, operations: List[Dict[str, Any]],
                               work_item_id: int) -> Optional[Dict]:
        """Apply JSON patch operations to a work item; None if nothing came back"""
        response = await self._request(
            'PATCH', f"_apis/wit/workitems/{work_item_id}",
            json=operations,
            headers={'Content-Type': 'application/json-patch+json'}
        )
        if response.status_code == 404:
            return None
        self._raise_for_status(response)

        if not response.content:
            return None
        return response.json()
