"""HTTP tests for ``/api/historial-contrato``."""

import pytest

from app.services import contrato_service


@pytest.fixture
def contrato(db, trabajador, datos_contrato):
    return contrato_service.crear_contrato(db, datos_contrato(trabajador.id))


def test_registrar_accion_uses_token_identity(client, admin_headers, contrato):
    response = client.post(
        "/api/historial-contrato/registrar-accion",
        json={
            "contrato_id": contrato.id,
            "tipo_accion": "SUSPENSION",
            "descripcion": "Suspensión temporal",
            "estado_anterior": {"estado": "ACTIVO"},
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["usuario_accion"] == "admin"
    assert data["trabajador"]["id"] == contrato.trabajador_id


def test_create_requires_write_role(client, consulta_headers, contrato):
    response = client.post(
        "/api/historial-contrato/",
        json={
            "contrato_id": contrato.id,
            "tipo_accion": "MODIFICACION",
            "descripcion_accion": "x",
        },
        headers=consulta_headers,
    )
    assert response.status_code == 403


def test_create_for_unknown_contract(client, admin_headers):
    response = client.post(
        "/api/historial-contrato/",
        json={"contrato_id": 999, "tipo_accion": "MODIFICACION", "descripcion_accion": "x"},
        headers=admin_headers,
    )
    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


def test_list_and_detail(client, admin_headers, contrato):
    listado = client.get("/api/historial-contrato/", headers=admin_headers).json()
    assert listado["success"] is True
    entrada_id = listado["data"][0]["id"]

    detalle = client.get(f"/api/historial-contrato/{entrada_id}", headers=admin_headers)
    assert detalle.json()["data"]["contrato"]["id"] == contrato.id


def test_unknown_entry_is_404(client, admin_headers):
    response = client.get("/api/historial-contrato/4040", headers=admin_headers)
    assert response.status_code == 404


def test_no_update_or_delete_routes(client, admin_headers, contrato):
    assert client.put("/api/historial-contrato/1", json={}, headers=admin_headers).status_code == 405
    assert client.delete("/api/historial-contrato/1", headers=admin_headers).status_code == 405


def test_recientes_and_rango(client, admin_headers, contrato):
    recientes = client.get("/api/historial-contrato/recientes?dias=7", headers=admin_headers)
    assert len(recientes.json()["data"]) == 1

    invalido = client.get("/api/historial-contrato/recientes?dias=0", headers=admin_headers)
    assert invalido.status_code == 422

    invertido = client.get(
        "/api/historial-contrato/rango-fechas",
        params={"fecha_inicio": "2026-02-01", "fecha_fin": "2026-01-01"},
        headers=admin_headers,
    )
    assert invertido.status_code == 422
    assert invertido.json()["error"] == "INVALID_STATE"


def test_tipo_accion_filter(client, admin_headers, contrato):
    ok = client.get("/api/historial-contrato/tipo-accion/CREACION", headers=admin_headers)
    assert len(ok.json()["data"]) == 1

    invalido = client.get("/api/historial-contrato/tipo-accion/BORRADO", headers=admin_headers)
    assert invalido.status_code == 422


def test_contract_views(client, admin_headers, contrato):
    base = f"/api/historial-contrato/contrato/{contrato.id}"
    ultima = client.get(f"{base}/ultima-accion", headers=admin_headers).json()["data"]
    assert ultima["tipo_accion"] == "CREACION"

    resumen = client.get(f"{base}/resumen", headers=admin_headers).json()["data"]
    assert resumen["total_acciones"] == 1

    cronologico = client.get(f"{base}/cronologico", headers=admin_headers).json()["data"]
    assert len(cronologico) == 1

    sin_acciones = client.get(
        "/api/historial-contrato/contrato/777/ultima-accion", headers=admin_headers
    )
    assert sin_acciones.status_code == 404


def test_statistics(client, admin_headers, contrato):
    stats = client.get("/api/historial-contrato/estadisticas", headers=admin_headers).json()
    assert stats["data"]["total_acciones"] == 1
    assert stats["data"]["contratos_con_historial"] == 1


def test_excel_export(client, admin_headers, contrato):
    response = client.get(
        "/api/historial-contrato/exportar/excel",
        params={"contrato_id": contrato.id},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert "attachment" in response.headers["content-disposition"]
    assert response.content[:2] == b"PK"


def test_recientes_without_days_uses_default_window(client, admin_headers, contrato):
    response = client.get("/api/historial-contrato/recientes", headers=admin_headers)
    assert response.status_code == 200
    assert [e["tipo_accion"] for e in response.json()["data"]] == ["CREACION"]
