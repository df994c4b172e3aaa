"""
Pydantic models for sighting reports.
These models handle validation for report submission, verifier actions and responses.

Field aliases keep the camelCase wire format clients already use
(addedAt, additionalInfo, imagePath, formattedAddress).
"""

from pydantic import BaseModel, Field
from typing import List, Optional


class ReportSubmission(BaseModel):
    """
    Incoming report (POST /reports).

    Presence and format of address/addedAt are checked by the intake
    pipeline, not here, so callers get the pipeline's messages.
    """
    added_at: Optional[str] = Field(None, alias="addedAt", description="ISO-8601 UTC timestamp, must be today")
    address: Optional[str] = Field(None, description="Free-text address of the sighting")
    additional_info: Optional[str] = Field(None, alias="additionalInfo", description="Optional note (moderated)")
    image_path: Optional[str] = Field(None, alias="imagePath", description="Storage path of the uploaded image")
    image_url: Optional[str] = Field(None, alias="imageUrl", description="Public image URL (published intake only)")

    class Config:
        populate_by_name = True
        extra = "ignore"
        json_schema_extra = {
            "example": {
                "addedAt": "2024-10-25T14:30:00.000Z",
                "address": "123 Main St, Springfield, IL",
                "additionalInfo": "Two unmarked vans parked outside",
                "imagePath": "reports/pending/1729866600000_photo.jpg",
            }
        }


class SubmissionResult(BaseModel):
    """Outcome of an accepted submission."""
    message: str
    formatted_address: str = Field(..., alias="formattedAddress")
    report_id: str = Field(..., alias="reportId", description="Address key the report is stored under")
    created: bool = Field(..., description="False when an existing report was merged")

    class Config:
        populate_by_name = True


class ReportActionRequest(BaseModel):
    """Verifier action on one pending report."""
    report_id: str = Field(..., min_length=1, alias="reportId")

    class Config:
        populate_by_name = True


class ActionResult(BaseModel):
    """
    Outcome of a verifier action.

    `warnings` lists secondary steps (audit entry, stats update) that failed
    after the report itself was transitioned.
    """
    success: bool = True
    message: str
    warnings: List[str] = Field(default_factory=list)


class StatsSnapshot(BaseModel):
    """Aggregate pin counters (a recomputable cache)."""
    total_pins: int = 0
    today_pins: int = 0
    week_pins: int = 0
