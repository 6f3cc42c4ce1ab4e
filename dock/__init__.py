"""Depot web layer: FastAPI app, routers and event bus."""
