from __future__ import annotations

import asyncio
from typing import List
from urllib.parse import quote

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse
from pydantic import BaseModel, ConfigDict, Field

from depot.StorageGate import StorageError


class FolderCreate(BaseModel):
    """Model for creating a folder."""
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    parent_path: str = Field(default="", alias="parentPath")


class RenameRequest(BaseModel):
    """Model for renaming a file or folder."""
    model_config = ConfigDict(populate_by_name=True)

    old_path: str | None = Field(default=None, alias="oldPath")
    new_name: str | None = Field(default=None, alias="newName")


class DeleteRequest(BaseModel):
    """Model for deleting files and folders."""
    items: List[str] = Field(default_factory=list)


def download_url(ref: str) -> str:
    return f"/api/files/{quote(ref)}"


def create_router(StorageGate, emit_event) -> APIRouter:
    router = APIRouter()

    @router.get("/api/files")
    async def api_file_tree():
        """Full ordered tree of the storage root."""
        tree = await asyncio.to_thread(StorageGate.list_tree)
        return [node.to_dict() for node in tree]

    @router.get("/api/files/{ref:path}")
    async def api_download(ref: str):
        """Serve a file's bytes by download reference."""
        path = await asyncio.to_thread(StorageGate.locate_file, ref)
        return FileResponse(path)

    @router.get("/api/folders")
    async def api_list_folder(path: str = ""):
        """List the direct children of a folder."""
        items = await asyncio.to_thread(StorageGate.list_folder, path)
        return {"path": path, "items": [node.to_dict() for node in items]}

    @router.get("/api/nodes")
    async def api_find_node(path: str):
        """Get a single file or folder."""
        node = await asyncio.to_thread(StorageGate.find_node, path)
        return node.to_dict()

    @router.post("/api/upload")
    async def api_upload(
        files: List[UploadFile] = File(...),
        folder_path: str = Form(default="", alias="folderPath"),
    ):
        """
        Upload one or more files into a folder.

        All or nothing: if any file fails, the files already stored for this
        request are removed again.
        """
        stored = []
        try:
            for upload in files:
                result = await asyncio.to_thread(
                    StorageGate.place_upload,
                    folder_path,
                    upload.filename,
                    upload.file,
                    upload.content_type,
                    upload.size,
                )
                entry = result.to_dict()
                entry["url"] = download_url(result.path)
                stored.append(entry)
        except StorageError:
            if stored:
                await asyncio.to_thread(StorageGate.delete, [entry["path"] for entry in stored])
            raise

        message = f"{len(stored)} file(s) uploaded successfully"
        await emit_event(
            "storage", message, operation="upload", paths=[entry["path"] for entry in stored]
        )
        return {"success": True, "files": stored, "message": message}

    @router.post("/api/folders")
    async def api_create_folder(data: FolderCreate):
        """Create a folder."""
        if not data.name:
            raise HTTPException(status_code=400, detail="Folder name is required")

        result = await asyncio.to_thread(StorageGate.create_folder, data.parent_path, data.name)

        message = "Folder created successfully"
        await emit_event("storage", message, operation="create_folder", path=result.path)
        return {"success": True, "path": result.path, "message": message}

    @router.put("/api/rename")
    async def api_rename(data: RenameRequest):
        """Rename a file or folder."""
        if not data.old_path or not data.new_name:
            raise HTTPException(status_code=400, detail="Old path and new name are required")

        result = await asyncio.to_thread(StorageGate.rename, data.old_path, data.new_name)

        message = "Item renamed successfully"
        await emit_event(
            "storage", message, operation="rename", old_path=result.old_path, path=result.new_path
        )
        return {
            "success": True,
            "oldPath": result.old_path,
            "newPath": result.new_path,
            "message": message,
        }

    @router.delete("/api/delete")
    async def api_delete(data: DeleteRequest):
        """Delete files and folders, folders recursively."""
        result = await asyncio.to_thread(StorageGate.delete, data.items)

        message = f"{result.count} item(s) deleted successfully"
        if result.deleted_items:
            await emit_event("storage", message, operation="delete", paths=result.deleted_items)
        return {
            "success": not result.errors,
            "deletedItems": result.deleted_items,
            "errors": [error.to_dict() for error in result.errors],
            "message": message,
        }

    return router


__all__ = ["create_router", "download_url"]
