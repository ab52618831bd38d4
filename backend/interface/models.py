from typing import Any

from pydantic import BaseModel

from db.models import JourneyStepModel

REQUIRED_STEP_FIELDS = ("phase", "date", "image_public_id", "caption", "theme", "step_order")


class PasswordRequest(BaseModel):
    # Any JSON value; non-strings simply fail the comparison
    password: Any = None


class TokenResponse(BaseModel):
    success: bool = True
    token: str


class Theme(BaseModel):
    background: str | None = None
    text: str | None = None
    accent: str | None = None


class JourneyStepIn(BaseModel):
    """Create/update body. Fields are optional so missing ones get a 400, not a 422."""

    phase: str | None = None
    date: str | None = None
    image_public_id: str | None = None
    caption: str | None = None
    theme: Theme | None = None
    step_order: int | None = None

    def missing_fields(self) -> list[str]:
        missing = []
        for name in REQUIRED_STEP_FIELDS:
            value = getattr(self, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        if self.theme is not None:
            missing.extend(
                f"theme.{name}"
                for name in ("background", "text", "accent")
                if not getattr(self.theme, name)
            )
        return missing

    def to_columns(self) -> dict:
        return {
            "phase": self.phase,
            "date": self.date,
            "image_public_id": self.image_public_id,
            "caption": self.caption,
            "theme_background": self.theme.background,
            "theme_text": self.theme.text,
            "theme_accent": self.theme.accent,
            "step_order": self.step_order,
        }


class UploadImageRequest(BaseModel):
    image_data: str | None = None
    public_id: str | None = None


class UploadImageResponse(BaseModel):
    success: bool = True
    public_id: str
    secure_url: str
    width: int | None = None
    height: int | None = None


def step_to_wire(step: JourneyStepModel, image_url: str | None, *, admin: bool = False) -> dict:
    """Serialize a journey step; admin views also get ordering and timestamps."""
    wire = {
        "id": step.id,
        "phase": step.phase,
        "date": step.date,
        "image_public_id": step.image_public_id,
        "image_url": image_url,
        "caption": step.caption,
        "theme": {
            "background": step.theme_background,
            "text": step.theme_text,
            "accent": step.theme_accent,
        },
    }
    if admin:
        wire["step_order"] = step.step_order
        wire["created_at"] = step.created_at.isoformat() if step.created_at else None
        wire["updated_at"] = step.updated_at.isoformat() if step.updated_at else None
    return wire
