"""Derive filtered variant archives from a full INPX catalog."""

import logging
import shutil
from pathlib import Path

from inpx_splitter.core.archive import InpxArchive
from inpx_splitter.core.errors import InpxSplitError, NamingConflictError, VariantBuildError
from inpx_splitter.models.variant import Variant

log = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER = "_all_"


def derive_variant_path(
    source: Path,
    tag: str,
    placeholder: str = DEFAULT_PLACEHOLDER,
    output_dir: Path | None = None,
) -> Path:
    """Substitute the variant tag into the source file name.

    `flibusta_all_local.inpx` becomes `flibusta_fb2_local.inpx` for tag
    "fb2". Only the first occurrence of the placeholder is replaced.

    Raises:
        NamingConflictError: If the placeholder is absent or the derived
            path would overwrite the source
    """
    name = source.name
    if not placeholder or placeholder not in name:
        raise NamingConflictError(
            f"Cannot derive '{tag}' output name: '{name}' has no '{placeholder}' token"
        )

    derived_name = name.replace(placeholder, f"_{tag}_", 1)
    target = (output_dir or source.parent) / derived_name

    if target.resolve() == source.resolve():
        raise NamingConflictError(f"Variant '{tag}' output would overwrite the source: {target}")

    return target


def build_variant(
    source: Path,
    variant: Variant,
    output_dir: Path | None = None,
    placeholder: str = DEFAULT_PLACEHOLDER,
) -> InpxArchive:
    """Copy the source archive and prune it down to the variant's entries.

    Raises:
        VariantBuildError: Wrapping whatever failed underneath
    """
    try:
        target = derive_variant_path(source, variant.tag, placeholder, output_dir)
    except NamingConflictError as e:
        raise VariantBuildError(variant.tag, e) from e

    log.debug("Building variant %s -> %s", variant.tag, target)

    try:
        shutil.copy2(source, target)
        archive = InpxArchive.open(target)
        removed = archive.prune(variant.keep_patterns)
    except (InpxSplitError, OSError) as e:
        target.unlink(missing_ok=True)
        raise VariantBuildError(variant.tag, e) from e
    except BaseException:
        # Interrupted mid-copy: never leave a truncated archive behind
        target.unlink(missing_ok=True)
        raise

    log.debug(
        "Variant %s built: kept patterns %s, removed %d entries",
        variant.tag,
        variant.keep_patterns,
        len(removed),
    )
    return archive
