"""Supabase client and helpers for the catalog, history and storage."""

from datetime import UTC, datetime

from supabase import Client, create_client

from .config import Settings
from .models.schemas import CatalogItem


def create_db_client(settings: Settings) -> Client:
    return create_client(settings.supabase_url, settings.supabase_service_role_key)


# ---------------------------------------------------------------------------
# catalogo_itens
# ---------------------------------------------------------------------------

def list_catalog_items(client: Client, user_id: str, *, limit: int = 50) -> list[CatalogItem]:
    """Active catalog items of a tenant."""
    rows = (
        client.table("catalogo_itens")
        .select("id, nome, categoria, preco_base, descricao")
        .eq("user_id", user_id)
        .eq("ativo", True)
        .limit(limit)
        .execute()
        .data
    )
    return [CatalogItem.model_validate(row) for row in rows or []]


# ---------------------------------------------------------------------------
# analises_ambiente
# ---------------------------------------------------------------------------

def create_analysis_record(
    client: Client,
    *,
    user_id: str,
    photo_url: str,
    simulated_image_url: str | None,
    room_type: str | None,
    analysis: dict,
) -> dict:
    row = {
        "user_id": user_id,
        "foto_ambiente_url": photo_url,
        "imagem_simulada_url": simulated_image_url,
        "tipo_ambiente": room_type,
        "analise_json": analysis,
        "data_analise": datetime.now(UTC).isoformat(),
    }
    return client.table("analises_ambiente").insert(row).execute().data[0]


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

def upload_to_storage(
    client: Client, bucket: str, path: str, data: bytes, content_type: str = "image/png"
) -> str:
    client.storage.from_(bucket).upload(
        path, data, file_options={"content-type": content_type, "upsert": "true"},
    )
    return client.storage.from_(bucket).get_public_url(path)
