"""Per-service request hooks layered on the generic HTTP adapter."""

import base64
from datetime import datetime, timezone
from email.message import EmailMessage
from typing import Any
from urllib.parse import parse_qsl

import httpx

from src.config import Settings

from .base import AdapterResponse
from .config import ServiceCatalog, load_service_catalog
from .exceptions import InvalidAdapterRequestError
from .http import HttpServiceAdapter, UpstreamRequest


DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"
DOCUMENT_MIME_TYPE = "application/vnd.google-apps.document"


def drive_query(*conditions: str) -> str:
    """Join Drive search conditions, always excluding trashed files."""
    return " and ".join(["trashed=false", *(c for c in conditions if c)])


def in_folder(folder_id: str | None) -> str:
    return f"'{folder_id}' in parents" if folder_id else ""


def _body(upstream: UpstreamRequest) -> dict[str, Any]:
    return upstream.body if isinstance(upstream.body, dict) else {}


def _merge_json(response: AdapterResponse, extra: dict[str, Any]) -> AdapterResponse:
    data = response.json_body()
    if not isinstance(data, dict):
        return response
    return AdapterResponse.from_data({**data, **extra}, status_code=response.status_code)


class GmailAdapter(HttpServiceAdapter):

    def prepare_send(self, upstream: UpstreamRequest) -> UpstreamRequest:
        body = _body(upstream)
        message = EmailMessage()
        message["To"] = body.get("to", "")
        message["Subject"] = body.get("subject", "")
        message.set_content(body.get("body", ""))
        raw = base64.urlsafe_b64encode(message.as_bytes()).decode("ascii").rstrip("=")
        return upstream.model_copy(update={"body": {"raw": raw}})


class CalendarAdapter(HttpServiceAdapter):

    def prepare_events(self, upstream: UpstreamRequest) -> UpstreamRequest:
        query = dict(upstream.query)
        query.setdefault("timeMin", datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"))
        return upstream.model_copy(update={"query": query})

    def prepare_create_event(self, upstream: UpstreamRequest) -> UpstreamRequest:
        body = _body(upstream)
        event = {
            "summary": body.get("summary"),
            "description": body.get("description"),
            "start": {"dateTime": body.get("start")},
            "end": {"dateTime": body.get("end")},
        }
        return upstream.model_copy(update={"body": event})


class GoogleWorkspaceAdapter(HttpServiceAdapter):
    """Shared helpers for adapters that also touch Drive file metadata."""

    async def add_to_folder(self, file_id: str, folder_id: str, token: str) -> AdapterResponse:
        return await self.send(
            UpstreamRequest(
                method="PATCH",
                url=f"{DRIVE_FILES_URL}/{file_id}",
                query={"addParents": folder_id, "fields": "id,parents"},
            ),
            token,
        )

    def prepare_listing(self, upstream: UpstreamRequest, mime_type: str) -> UpstreamRequest:
        query = dict(upstream.query)
        folder_id = query.pop("folderId", "")
        query["q"] = drive_query(f"mimeType='{mime_type}'", in_folder(folder_id))
        return upstream.model_copy(update={"query": query})


class DriveAdapter(GoogleWorkspaceAdapter):

    def prepare_files(self, upstream: UpstreamRequest) -> UpstreamRequest:
        query = dict(upstream.query)
        user_query = query.pop("q", "")
        folder_id = query.pop("folderId", "")
        query["q"] = drive_query(user_query, in_folder(folder_id))
        return upstream.model_copy(update={"query": query})

    def prepare_search(self, upstream: UpstreamRequest) -> UpstreamRequest:
        query = dict(upstream.query)
        name = query.pop("name", "")
        mime_type = query.pop("mimeType", "")
        folder_id = query.pop("folderId", "")
        query["q"] = drive_query(
            f"name contains '{name}'" if name else "",
            f"mimeType='{mime_type}'" if mime_type else "",
            in_folder(folder_id),
        )
        return upstream.model_copy(update={"query": query})

    def prepare_create_folder(self, upstream: UpstreamRequest) -> UpstreamRequest:
        body = _body(upstream)
        metadata: dict[str, Any] = {"name": body.get("name"), "mimeType": FOLDER_MIME_TYPE}
        if body.get("parentId"):
            metadata["parents"] = [body["parentId"]]
        return upstream.model_copy(update={"body": metadata})

    async def handle_create_folder(self, upstream: UpstreamRequest, token: str) -> AdapterResponse:
        created = await self.send(upstream, token)
        if not created.ok:
            return created
        folder_id = created.json_body().get("id")
        return _merge_json(created, {"webViewLink": f"https://drive.google.com/drive/folders/{folder_id}"})

    async def handle_move(self, upstream: UpstreamRequest, token: str) -> AdapterResponse:
        body = _body(upstream)
        folder_id = body.get("folderId")
        if not folder_id:
            raise InvalidAdapterRequestError(self.name, "missing 'folderId'")

        query = {**upstream.query, "addParents": folder_id}
        if body.get("removeFromCurrent"):
            current = await self.send(
                UpstreamRequest(method="GET", url=upstream.url, query={"fields": "parents"}),
                token,
            )
            if not current.ok:
                return current
            parents = current.json_body().get("parents") or []
            if parents:
                query["removeParents"] = ",".join(parents)

        return await self.send(upstream.model_copy(update={"query": query, "body": None}), token)


class SheetsAdapter(GoogleWorkspaceAdapter):

    def prepare_list(self, upstream: UpstreamRequest) -> UpstreamRequest:
        return self.prepare_listing(upstream, SPREADSHEET_MIME_TYPE)

    async def handle_create(self, upstream: UpstreamRequest, token: str) -> AdapterResponse:
        body = _body(upstream)
        spreadsheet: dict[str, Any] = {
            "properties": {"title": body.get("title")},
            "sheets": [
                {"properties": {"title": tab.get("title") if isinstance(tab, dict) else str(tab)}}
                for tab in body.get("sheets") or []
            ],
        }
        created = await self.send(upstream.model_copy(update={"body": spreadsheet}), token)
        if not created.ok:
            return created

        spreadsheet_id = created.json_body().get("spreadsheetId")
        if body.get("folderId") and spreadsheet_id:
            moved = await self.add_to_folder(spreadsheet_id, body["folderId"], token)
            if not moved.ok:
                return moved
        return created


class DocsAdapter(GoogleWorkspaceAdapter):

    def prepare_list(self, upstream: UpstreamRequest) -> UpstreamRequest:
        return self.prepare_listing(upstream, DOCUMENT_MIME_TYPE)

    async def _insert_text(self, document_url: str, index: int, text: str, token: str) -> AdapterResponse:
        return await self.send(
            UpstreamRequest(
                method="POST",
                url=f"{document_url}:batchUpdate",
                body={"requests": [{"insertText": {"location": {"index": index}, "text": text}}]},
            ),
            token,
        )

    async def handle_create(self, upstream: UpstreamRequest, token: str) -> AdapterResponse:
        body = _body(upstream)
        created = await self.send(upstream.model_copy(update={"body": {"title": body.get("title")}}), token)
        if not created.ok:
            return created

        document_id = created.json_body().get("documentId")
        if body.get("content"):
            inserted = await self._insert_text(f"{upstream.url}/{document_id}", 1, body["content"], token)
            if not inserted.ok:
                return inserted
        if body.get("folderId"):
            moved = await self.add_to_folder(document_id, body["folderId"], token)
            if not moved.ok:
                return moved
        return _merge_json(created, {"documentUrl": f"https://docs.google.com/document/d/{document_id}/edit"})

    async def handle_read(self, upstream: UpstreamRequest, token: str) -> AdapterResponse:
        response = await self.send(upstream, token)
        if not response.ok:
            return response

        document = response.json_body()
        text = "".join(
            element.get("textRun", {}).get("content", "")
            for block in document.get("body", {}).get("content", [])
            for element in block.get("paragraph", {}).get("elements", [])
        )
        document_id = document.get("documentId") or upstream.url.rsplit("/", 1)[-1]
        return AdapterResponse.from_data({
            "title": document.get("title"),
            "content": text,
            "documentUrl": f"https://docs.google.com/document/d/{document_id}/edit",
        })

    async def handle_append(self, upstream: UpstreamRequest, token: str) -> AdapterResponse:
        text = _body(upstream).get("text")
        if not text:
            raise InvalidAdapterRequestError(self.name, "missing 'text'")

        document = await self.send(UpstreamRequest(method="GET", url=upstream.url), token)
        if not document.ok:
            return document

        content = document.json_body().get("body", {}).get("content") or [{}]
        end_index = content[-1].get("endIndex", 1)
        return await self._insert_text(upstream.url, max(end_index - 1, 1), f"\n{text}", token)


class SentryAdapter(HttpServiceAdapter):

    def prepare_create_project(self, upstream: UpstreamRequest) -> UpstreamRequest:
        body = _body(upstream)
        name = str(body.get("name", ""))
        project = {
            "name": name,
            "slug": body.get("slug") or "-".join(name.lower().split()),
            "platform": body.get("platform") or "javascript",
        }
        return upstream.model_copy(update={"body": project})


class MetaAdsAdapter(HttpServiceAdapter):

    def prepare_campaign_status(self, upstream: UpstreamRequest) -> UpstreamRequest:
        status = _body(upstream).get("status")
        if not status:
            raise InvalidAdapterRequestError(self.name, "missing 'status'")
        return upstream.model_copy(update={"query": {**upstream.query, "status": status}, "body": None})


class GoogleAdsAdapter(HttpServiceAdapter):

    def prepare_performance(self, upstream: UpstreamRequest) -> UpstreamRequest:
        query = dict(upstream.query)
        days = str(query.pop("days", "7"))
        if not days.isdigit():
            raise InvalidAdapterRequestError(self.name, "'days' must be a whole number")
        gaql = (
            "SELECT metrics.impressions, metrics.clicks, metrics.cost_micros, "
            "metrics.conversions, metrics.ctr, metrics.average_cpc "
            f"FROM customer WHERE segments.date DURING LAST_{days}_DAYS"
        )
        return upstream.model_copy(update={"query": query, "body": {"query": gaql}})


class BrowserAdapter(HttpServiceAdapter):

    def prepare_screenshot(self, upstream: UpstreamRequest) -> UpstreamRequest:
        body = _body(upstream)
        payload = {
            "url": body.get("url"),
            "options": {"fullPage": bool(body.get("fullPage", False)), "type": "png"},
        }
        return upstream.model_copy(update={"body": payload})

    def prepare_pdf(self, upstream: UpstreamRequest) -> UpstreamRequest:
        payload = {"url": _body(upstream).get("url"), "options": {"printBackground": True}}
        return upstream.model_copy(update={"body": payload})

    def prepare_content(self, upstream: UpstreamRequest) -> UpstreamRequest:
        return upstream.model_copy(update={"body": {"url": _body(upstream).get("url")}})

    def prepare_scrape(self, upstream: UpstreamRequest) -> UpstreamRequest:
        body = _body(upstream)
        elements = [
            element if isinstance(element, dict) else {"selector": str(element)}
            for element in body.get("elements") or []
        ]
        return upstream.model_copy(update={"body": {"url": body.get("url"), "elements": elements}})

    def prepare_function(self, upstream: UpstreamRequest) -> UpstreamRequest:
        body = _body(upstream)
        payload = {"code": body.get("code"), "context": body.get("context") or {}}
        return upstream.model_copy(update={"body": payload})


class UnipileAdapter(HttpServiceAdapter):

    def prepare_connect(self, upstream: UpstreamRequest) -> UpstreamRequest:
        body = _body(upstream)
        invitation = {
            "account_id": body.get("account_id"),
            "provider_id": body.get("profile_id"),
            "message": body.get("message") or "",
        }
        return upstream.model_copy(update={"body": invitation})


class SupabaseAdapter(HttpServiceAdapter):

    @staticmethod
    def _expand_filter(upstream: UpstreamRequest) -> UpstreamRequest:
        # filter carries raw PostgREST conditions such as "status=eq.active"
        query = dict(upstream.query)
        raw_filter = query.pop("filter", "")
        if raw_filter:
            query.update(parse_qsl(str(raw_filter), keep_blank_values=True))
        return upstream.model_copy(update={"query": query})

    def prepare_query(self, upstream: UpstreamRequest) -> UpstreamRequest:
        return self._expand_filter(upstream)

    def prepare_update(self, upstream: UpstreamRequest) -> UpstreamRequest:
        return self._expand_filter(upstream)

    def prepare_delete(self, upstream: UpstreamRequest) -> UpstreamRequest:
        return self._expand_filter(upstream)

    def prepare_rpc(self, upstream: UpstreamRequest) -> UpstreamRequest:
        if upstream.body is None:
            return upstream.model_copy(update={"body": {}})
        return upstream

    def prepare_files(self, upstream: UpstreamRequest) -> UpstreamRequest:
        query = dict(upstream.query)
        listing = {"prefix": query.pop("path", ""), "limit": 100, "offset": 0}
        return upstream.model_copy(update={"query": query, "body": listing})


class Mem0Adapter(HttpServiceAdapter):

    def _user_id(self, body: dict[str, Any]) -> str:
        return body.get("userId") or body.get("user_id") or self.settings.MEM0_USER_ID

    def prepare_add(self, upstream: UpstreamRequest) -> UpstreamRequest:
        body = _body(upstream)
        if not body.get("content"):
            raise InvalidAdapterRequestError(self.name, "content is required")
        memory = {
            "messages": [{"role": "user", "content": body["content"]}],
            "user_id": self._user_id(body),
            "metadata": {"source": self.settings.APP_NAME},
        }
        return upstream.model_copy(update={"body": memory})

    def prepare_search(self, upstream: UpstreamRequest) -> UpstreamRequest:
        body = _body(upstream)
        if not body.get("query"):
            raise InvalidAdapterRequestError(self.name, "query is required")
        search = {
            "query": body["query"],
            "user_id": self._user_id(body),
            "top_k": body.get("top_k", 10),
        }
        return upstream.model_copy(update={"body": search})


ADAPTER_TYPES: dict[str, type[HttpServiceAdapter]] = {
    "gmail": GmailAdapter,
    "calendar": CalendarAdapter,
    "drive": DriveAdapter,
    "sheets": SheetsAdapter,
    "docs": DocsAdapter,
    "sentry": SentryAdapter,
    "meta_ads": MetaAdsAdapter,
    "google_ads": GoogleAdsAdapter,
    "browser": BrowserAdapter,
    "unipile": UnipileAdapter,
    "supabase": SupabaseAdapter,
    "mem0": Mem0Adapter,
}


def build_adapters(
    settings: Settings,
    client: httpx.AsyncClient,
    catalog: ServiceCatalog | None = None,
) -> dict[str, HttpServiceAdapter]:
    """Instantiate one adapter per configured service.

    Args:
        settings: Application settings holding base URLs and extra headers.
        client: Shared HTTP client.
        catalog: Service catalog; loaded from the packaged YAML if omitted.

    Returns:
        Mapping of service name to adapter, in catalog order.
    """
    catalog = catalog or load_service_catalog()
    return {
        service.name: ADAPTER_TYPES.get(service.name, HttpServiceAdapter)(service, client, settings)
        for service in catalog.services
    }
