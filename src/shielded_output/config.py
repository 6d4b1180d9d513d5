"""
Prover configuration.

Defaults suit interactive use; deployments tune them through the
environment:

    SHIELDED_OUTPUT_FIXED_BASE_WINDOW   window for setup tables (2..16)
    SHIELDED_OUTPUT_MSM_WINDOW          bucket width for proving (1..16)
    SHIELDED_OUTPUT_SELF_VERIFY         verify each proof before returning it
"""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field


class ProverConfig(BaseModel):
    """Tuning knobs for Groth16 setup and proving."""
    model_config = ConfigDict(frozen=True)

    fixed_base_window: int | None = Field(
        default=None, ge=2, le=16, description="Fixed-base table window in bits; automatic when None"
    )
    msm_window: int | None = Field(
        default=None, ge=1, le=16, description="Pippenger bucket width in bits; automatic when None"
    )
    self_verify: bool = Field(
        default=False, description="Verify every proof before returning it"
    )

    @classmethod
    def from_env(cls) -> ProverConfig:
        """
        Build a config from SHIELDED_OUTPUT_* environment variables.

        Raises:
            pydantic.ValidationError: If a variable is set to an invalid value.
        """
        values: dict[str, str] = {}
        fixed_base_window = os.getenv("SHIELDED_OUTPUT_FIXED_BASE_WINDOW")
        msm_window = os.getenv("SHIELDED_OUTPUT_MSM_WINDOW")
        self_verify = os.getenv("SHIELDED_OUTPUT_SELF_VERIFY")
        if fixed_base_window:
            values["fixed_base_window"] = fixed_base_window
        if msm_window:
            values["msm_window"] = msm_window
        if self_verify:
            values["self_verify"] = self_verify
        return cls(**values)
