from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

class CamelModel(BaseModel):
    """Base for records handed to the JS side; dumps with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

Confidence = float  # OCR recognition confidence, 0-100
