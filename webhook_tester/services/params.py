# webhook_tester/services/params.py
"""
Parameter building for webhook submissions.
Maps each schema field to a placeholder value derived from its declared type.
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from webhook_tester.core.config import Config, config
from webhook_tester.models.models import SchemaField

IMAGE_TYPES = {"image"}
VIDEO_TYPES = {"video"}
TEXT_TYPES = {"text", "prompt"}


class PlaceholderAssets(BaseModel):
    """Placeholder inputs used to fill a webhook schema."""

    model_config = ConfigDict(frozen=True)

    image_url: str
    image2_url: str
    video_url: str
    text: str

    @classmethod
    def from_config(cls, cfg: Optional[Config] = None) -> "PlaceholderAssets":
        cfg = cfg or config
        return cls(
            image_url=cfg.PLACEHOLDER_IMAGE_URL,
            image2_url=cfg.PLACEHOLDER_IMAGE2_URL,
            video_url=cfg.PLACEHOLDER_VIDEO_URL,
            text=cfg.PLACEHOLDER_TEXT,
        )


def build_params_from_schema(
    fields: List[SchemaField], assets: PlaceholderAssets
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Build submission parameters from a webhook schema.

    Image fields alternate between the two placeholder images so multi-image
    flows receive distinct inputs. Unknown types fall back to the first image.

    Args:
        fields: Schema fields in declaration order
        assets: Placeholder inputs

    Returns:
        Tuple[Dict[str, Any], List[str]]: Parameters keyed by field name, and
        warnings for fields whose type was not recognized
    """
    params: Dict[str, Any] = {}
    warnings: List[str] = []
    image_index = 0

    for field in fields:
        field_type = field.type.strip().lower()

        if field_type in IMAGE_TYPES:
            url = assets.image_url if image_index % 2 == 0 else assets.image2_url
            params[field.key] = {"url": url}
            image_index += 1
        elif field_type in VIDEO_TYPES:
            params[field.key] = {"url": assets.video_url}
        elif field_type in TEXT_TYPES:
            params[field.key] = {"value": assets.text}
        else:
            warnings.append(
                f"Unknown field type '{field.type}' for '{field.key}', using image placeholder"
            )
            params[field.key] = {"url": assets.image_url}

    return params, warnings
