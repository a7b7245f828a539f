"""
Data-source toggle and validation models.

``DataSourceSettings`` is the typed state behind the demo/live toggle;
``ValidationResult`` is what the validation harness reports for one data type.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from .enums import DataSourceMode, ForcedMode


class DataSourceSettings(BaseModel):
    """
    Current data-source selection.

    Attributes:
        current_source: Source the API reads from right now
        forced_mode: Lock set from the settings page; ``none`` allows toggling
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    current_source: DataSourceMode = DataSourceMode.MOCK
    forced_mode: ForcedMode = ForcedMode.NONE

    @computed_field(alias="isDemoMode")
    @property
    def is_demo_mode(self) -> bool:
        return self.current_source == DataSourceMode.MOCK

    @computed_field(alias="isLiveMode")
    @property
    def is_live_mode(self) -> bool:
        return self.current_source == DataSourceMode.DATABASE

    @computed_field(alias="isLocked")
    @property
    def is_locked(self) -> bool:
        return self.forced_mode != ForcedMode.NONE

    @computed_field(alias="modeLabel")
    @property
    def mode_label(self) -> str:
        if self.forced_mode == ForcedMode.MOCK:
            return "Demo Mode (Forced)"
        if self.forced_mode == ForcedMode.DATABASE:
            return "Production Mode (Forced)"
        return "Demo Mode" if self.is_demo_mode else "Production Mode"

    @computed_field(alias="modeDescription")
    @property
    def mode_description(self) -> str:
        if self.forced_mode == ForcedMode.MOCK:
            return "Using sample data - mode locked to demo"
        if self.forced_mode == ForcedMode.DATABASE:
            return "Using live database data - mode locked to production"
        if self.is_demo_mode:
            return "Using sample data for demonstration"
        return "Using live database data"


class ValidationResult(BaseModel):
    """
    Outcome of validating one data type against its expected record count.

    ``is_valid`` is the conjunction of the three verification flags.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    data_type: str
    is_valid: bool = False
    source_verified: bool = False
    count_verified: bool = False
    integrity_verified: bool = False
    expected_count: int = 0
    actual_count: int = 0
    source: DataSourceMode = DataSourceMode.MOCK
    error: Optional[str] = None
    last_checked: datetime = Field(default_factory=datetime.utcnow)
