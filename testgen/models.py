from typing import Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field

from testgen.config import FALLBACK_COMPONENT_NAME, UNKNOWN_URL


class ElementRecord(BaseModel):
    type: str
    # Values are `True` for bare attributes, otherwise a literal string,
    # an `expr:<name>` tag, or one of the "dynamic" / "unknown" sentinels.
    properties: Dict[str, Union[bool, str]] = Field(default_factory=dict)
    text: Optional[str] = None
    stable_id: Optional[str] = Field(default=None, alias="stableId")
    events: Dict[str, str] = Field(default_factory=dict)
    role_hint: Optional[str] = Field(default=None, alias="roleHint")

    model_config = {
        "populate_by_name": True,
        "frozen": True,
    }


class StatePair(BaseModel):
    value_name: str = Field(alias="valueName")
    setter_name: str = Field(alias="setterName")

    model_config = {
        "populate_by_name": True,
        "frozen": True,
    }


class NetworkCall(BaseModel):
    kind: Literal["fetch", "axios"]
    method: Optional[str] = None
    url: str = UNKNOWN_URL

    model_config = {
        "frozen": True,
    }


class AnalyzedComponent(BaseModel):
    name: str = FALLBACK_COMPONENT_NAME
    elements: List[ElementRecord] = Field(default_factory=list)
    states: List[StatePair] = Field(default_factory=list)
    has_effects: bool = Field(default=False, alias="hasEffects")
    props: List[str] = Field(default_factory=list)
    uses_fetch: bool = Field(default=False, alias="usesFetch")
    uses_axios: bool = Field(default=False, alias="usesAxios")
    apis: List[NetworkCall] = Field(default_factory=list)
    effect_dependencies: List[str] = Field(default_factory=list, alias="effectDependencies")
    event_to_setter_map: Dict[str, List[str]] = Field(default_factory=dict, alias="eventToSetterMap")

    model_config = {
        "populate_by_name": True,
        "frozen": True,
    }


class BatchItem(BaseModel):
    path: str
    component: Optional[AnalyzedComponent] = None
    error: Optional[str] = None
