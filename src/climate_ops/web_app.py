from __future__ import annotations

import io
from typing import Literal

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from climate_ops.logging_setup import logger
from climate_ops.reports import render_situation_report_pdf
from climate_ops.system import ClimateOpsSystem
from climate_ops.weather import weather_condition

Mode = Literal["winter", "summer", "landslide", "heat"]

app = FastAPI(title="Gyeonggi Climate Ops")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

_system: ClimateOpsSystem | None = None


def get_system() -> ClimateOpsSystem:
    global _system
    if _system is None:
        _system = ClimateOpsSystem()
    return _system


class AnalysisRequest(BaseModel):
    mode: Mode = "winter"


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/api/risk-analysis")
def risk_analysis(mode: Mode = Query("winter"), system: ClimateOpsSystem = Depends(get_system)):
    return system.analyze(mode).to_dict()


@app.post("/api/risk-analysis")
def risk_analysis_post(body: AnalysisRequest, system: ClimateOpsSystem = Depends(get_system)):
    return system.analyze(body.mode).to_dict()


@app.get("/api/briefing")
def briefing(mode: Mode = Query("winter"), system: ClimateOpsSystem = Depends(get_system)):
    return system.brief(mode).to_dict()


@app.get("/api/alerts")
def alerts(mode: Mode = Query("winter"), system: ClimateOpsSystem = Depends(get_system)):
    return system.alert(mode).to_dict()


@app.get("/api/reports")
def reports(mode: Mode = Query("winter"), system: ClimateOpsSystem = Depends(get_system)):
    return system.report(mode).to_dict()


@app.get("/api/reports/pdf")
def report_pdf(mode: Mode = Query("winter"), system: ClimateOpsSystem = Depends(get_system)):
    report = system.report(mode)
    content = render_situation_report_pdf(report)
    logger.info(f"[web] rendered {report.id} ({len(content)} bytes)")
    return StreamingResponse(
        io.BytesIO(content),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=situation_report_{mode}.pdf"},
    )


@app.get("/api/deployment")
def deployment(mode: Mode = Query("winter"), system: ClimateOpsSystem = Depends(get_system)):
    return system.plan_deployment(mode).to_dict()


@app.get("/api/weather")
def weather(mode: Mode = Query("winter"), system: ClimateOpsSystem = Depends(get_system)):
    data = system.weather(mode)
    payload = data.to_dict()
    condition = weather_condition(data)
    payload["recommendedMode"] = condition.recommended_mode
    payload["modeReasons"] = condition.to_dict()["modeReasons"]
    return payload


@app.get("/api/vehicles")
def vehicles(mode: Mode = Query("winter"), system: ClimateOpsSystem = Depends(get_system)):
    return {
        "vehicles": [v.to_dict() for v in system.vehicles(mode)],
        "resources": [r.to_dict() for r in system.resources(mode)],
    }

