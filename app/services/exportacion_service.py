"""
Export service layer.

Reads through ``historial_contrato_service`` so the exported rows are the
same ones the JSON endpoints return, then hands them to ``ExcelExporter``.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any

from sqlalchemy.orm import Session

from app.exporters.excel_exporter import ExcelExporter
from app.schemas.historial_contrato import HistorialContratoResponse
from app.services import historial_contrato_service

logger = logging.getLogger(__name__)

_HISTORIAL_HEADERS = [
    "ID",
    "Fecha de registro",
    "Acción",
    "Contrato",
    "Trabajador",
    "Remuneración contrato",
    "Descripción",
    "Observaciones",
    "Usuario",
    "IP",
]
_HISTORIAL_MONEY_COLS = {5}


def _historial_row(entrada: HistorialContratoResponse) -> list[Any]:
    return [
        entrada.id,
        entrada.fecha_registro,
        entrada.tipo_accion.value,
        entrada.contrato.id,
        entrada.trabajador.nombre_completo,
        entrada.contrato.remuneracion,
        entrada.descripcion_accion,
        entrada.observaciones,
        entrada.usuario_accion,
        entrada.ip_usuario,
    ]


def exportar_historial_excel(
    db: Session,
    contrato_id: int | None = None,
    trabajador_id: int | None = None,
) -> bytes:
    """Build the contract-history workbook, newest entries first.

    ``contrato_id`` takes precedence over ``trabajador_id``; with neither the
    whole ledger is exported.
    """
    filtros: dict[str, str] = {}
    if contrato_id is not None:
        entradas = historial_contrato_service.find_by_contrato(db, contrato_id)
        filtros["Contrato"] = str(contrato_id)
    elif trabajador_id is not None:
        entradas = historial_contrato_service.find_by_trabajador(db, trabajador_id)
        filtros["Trabajador"] = str(trabajador_id)
    else:
        entradas = historial_contrato_service.find_all(db)

    por_tipo = Counter(e.tipo_accion.value for e in entradas)
    resumen: dict[str, Any] = {"Total acciones": len(entradas)}
    resumen.update(sorted(por_tipo.items()))

    exporter = ExcelExporter(
        title="Historial de contratos",
        filters=filtros,
        sheet_name="Historial",
    )
    exporter.add_header(num_cols=len(_HISTORIAL_HEADERS))
    exporter.add_summary_row(resumen)
    exporter.add_data_table(
        _HISTORIAL_HEADERS,
        [_historial_row(e) for e in entradas],
        money_cols=_HISTORIAL_MONEY_COLS,
    )
    file_bytes = exporter.finalize()

    logger.info(
        "exportar_historial_excel: contrato_id=%s trabajador_id=%s filas=%d bytes=%d",
        contrato_id, trabajador_id, len(entradas), len(file_bytes),
    )
    return file_bytes
