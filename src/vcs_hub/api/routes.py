from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request


async def _json_object(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Request body must be JSON.") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object.")
    return payload


def register_repository_routes(
    app: FastAPI,
    *,
    state: Any,
    logger: logging.Logger,
) -> None:
    service = state.repository_service

    @app.get("/api/repositories")
    async def api_list_repositories() -> dict[str, Any]:
        repositories = await asyncio.to_thread(service.list_repositories)
        return {"repositories": repositories}

    @app.post("/api/repositories")
    async def api_create_repository(request: Request) -> dict[str, Any]:
        payload = await _json_object(request)
        credential_ref = payload.get("credential_ref")
        repository = await asyncio.to_thread(
            service.create_repository,
            name=str(payload.get("name") or "").strip(),
            callsign=str(payload.get("callsign") or "").strip(),
            vcs=payload.get("vcs"),
            details=payload.get("details"),
            credential_ref=str(credential_ref).strip() if credential_ref is not None else None,
        )
        logger.debug("Repository created via API.", extra={"component": "api", "operation": "create_repository"})
        return {"repository": repository}

    @app.get("/api/repositories/{repository_id}")
    async def api_get_repository(repository_id: int) -> dict[str, Any]:
        repository = await asyncio.to_thread(service.describe_repository, repository_id)
        return {"repository": repository}

    @app.patch("/api/repositories/{repository_id}")
    async def api_update_repository(repository_id: int, request: Request) -> dict[str, Any]:
        payload = await _json_object(request)
        clear_credential = "credential_ref" in payload and payload.get("credential_ref") is None
        repository = await asyncio.to_thread(
            service.update_repository,
            repository_id,
            details=payload.get("details"),
            credential_ref=payload.get("credential_ref"),
            clear_credential=clear_credential,
        )
        return {"repository": repository}

    @app.delete("/api/repositories/{repository_id}")
    async def api_delete_repository(repository_id: int) -> dict[str, Any]:
        return await asyncio.to_thread(service.delete_repository, repository_id)

    @app.post("/api/remote-uri/validate")
    async def api_validate_remote_uri(request: Request) -> dict[str, Any]:
        payload = await _json_object(request)
        return service.validate_remote_uri(payload.get("uri"))

    @app.get("/api/repositories/{repository_id}/clone-uri")
    async def api_clone_uri(repository_id: int) -> dict[str, Any]:
        return await asyncio.to_thread(service.public_clone_uri, repository_id)

    @app.get("/api/repositories/{repository_id}/status")
    async def api_list_status_messages(repository_id: int) -> dict[str, Any]:
        messages = await asyncio.to_thread(service.status_messages, repository_id)
        return {"status_messages": messages}

    @app.get("/api/repositories/{repository_id}/status/{status_type}")
    async def api_get_status_message(repository_id: int, status_type: str) -> dict[str, Any]:
        message = await asyncio.to_thread(service.status_message, repository_id, status_type)
        if message is None:
            raise HTTPException(status_code=404, detail="Status message not found.")
        return {"status_message": message}

    @app.put("/api/repositories/{repository_id}/status/{status_type}")
    async def api_write_status_message(repository_id: int, status_type: str, request: Request) -> dict[str, Any]:
        payload = await _json_object(request)
        message = await asyncio.to_thread(
            service.write_status_message,
            repository_id,
            status_type,
            status_code=payload.get("status_code"),
            parameters=payload.get("parameters"),
        )
        return {"status_message": message}

    @app.delete("/api/repositories/{repository_id}/status/{status_type}")
    async def api_delete_status_message(repository_id: int, status_type: str) -> dict[str, Any]:
        await asyncio.to_thread(
            service.write_status_message,
            repository_id,
            status_type,
            status_code=None,
        )
        return {"status_message": None}


__all__ = ["register_repository_routes"]
