from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class ScopeFlowBaseModel(BaseModel):
    """
    Base model for all ScopeFlow models with strict field validation.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")


class FrozenScopeFlowModel(ScopeFlowBaseModel):
    """
    Base for immutable values built once per run, such as filter configurations.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid", frozen=True)
