"""Schema for testament configuration."""

from pydantic import BaseModel, ConfigDict, Field

from testament.git.models import SHORT_HASH_LENGTH


class AppConfigSchema(BaseModel):
	"""Settings that shape how a testament is resolved and rendered."""

	model_config = ConfigDict(extra="forbid")

	include_untracked: bool = Field(
		default=False,
		description="Count untracked files as modifications",
	)
	short_hash_length: int = Field(
		default=SHORT_HASH_LENGTH,
		ge=4,
		le=40,
		description="Number of hash characters shown when rendering",
	)
	source_date_epoch_var: str = Field(
		default="SOURCE_DATE_EPOCH",
		min_length=1,
		description="Environment variable holding the reproducible fallback timestamp",
	)
	package_version: str | None = Field(default=None, description="Version of the package being built")
	trusted_branch: str | None = Field(
		default=None,
		description="Branch whose clean builds are rendered as the package version",
	)
