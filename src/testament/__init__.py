"""Describe the git working tree a build came from."""

from testament.git.models import (
	CommitInfo,
	FallbackReason,
	FallbackTestament,
	Modification,
	ModificationKind,
	RepositoryTestament,
	TagInfo,
	Testament,
)
from testament.git.utils import (
	AmbiguousTag,
	InvalidOverrideTimestamp,
	MetadataCorrupt,
	RepositoryReadError,
	RepositoryUnavailable,
	ResolutionError,
)
from testament.render import RenderedFields, describe, format_date, render, render_with_version
from testament.resolver import RepositoryResolver, resolve_fallback_time, resolve_testament

__version__ = "0.3.0"

__all__ = [
	"AmbiguousTag",
	"CommitInfo",
	"FallbackReason",
	"FallbackTestament",
	"InvalidOverrideTimestamp",
	"MetadataCorrupt",
	"Modification",
	"ModificationKind",
	"RenderedFields",
	"RepositoryReadError",
	"RepositoryResolver",
	"RepositoryTestament",
	"RepositoryUnavailable",
	"ResolutionError",
	"TagInfo",
	"Testament",
	"__version__",
	"describe",
	"format_date",
	"render",
	"render_with_version",
	"resolve_fallback_time",
	"resolve_testament",
]
