"""Apply rendered spikes onto a target tree.

Application is two-phase. Every rendered file and patch is first evaluated
against the current disk state and staged in memory; a conflict anywhere
stops the apply before anything is written. Only a fully conflict-free
staging is committed, atomically, through the StagingBuffer.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from spikeforge.apply.merge import ApplyResult, ConflictStrategy, FileOutcome, FileStatus
from spikeforge.apply.staging import StagingBuffer, checksum_of, read_bytes
from spikeforge.apply.structured import (
    decode_text,
    merge_content,
    merge_lines,
    merge_structured,
    structured_format,
)
from spikeforge.foundation.errors import (
    ConflictError,
    ErrorCode,
    SpikeforgeError,
    io_error,
    param_error,
    patch_target_missing,
)
from spikeforge.spikes.renderer import RenderedFile, RenderedOutput, RenderedPatch
from spikeforge.spikes.types import PatchOperation

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Staging:
    """Mutable bookkeeping for one apply call."""

    buffer: StagingBuffer
    outcomes: list[FileOutcome] = field(default_factory=list)

    def record(self, path: str, status: FileStatus, detail: str = "", source: str = "file") -> None:
        self.outcomes.append(FileOutcome(path=path, status=status, detail=detail, source=source))

    @property
    def conflicted(self) -> list[FileOutcome]:
        return [o for o in self.outcomes if o.status is FileStatus.CONFLICTED]


class PatchApplier:
    """Reconciles rendered output with a target root under a conflict strategy.

    Example:
        >>> applier = PatchApplier()
        >>> result = applier.apply(rendered, Path("."), "three_way_merge")
        >>> result.success
        True
    """

    def apply(
        self,
        rendered: RenderedOutput,
        target_root: Path | str,
        strategy: ConflictStrategy | str | None = None,
    ) -> ApplyResult:
        """Apply ``rendered`` to ``target_root``.

        Returns:
            ApplyResult. When ``success`` is False no file differs from its
            pre-apply state, apart from paths listed in ``indeterminate``.

        Raises:
            ValidationError: Unknown strategy, or a path escaping the root
                through a symlink.
            PatchTargetMissingError: A patch targets a file that is neither on
                disk nor produced by the spike. Raised before any disk access
                that could mutate state.
        """
        chosen = ConflictStrategy.parse(strategy)
        root = Path(target_root).resolve()
        if root.exists() and not root.is_dir():
            raise io_error(ErrorCode.FILE_WRITE_FAILED, str(root), detail="target root is not a directory")

        for path in [f.path for f in rendered.files] + [p.path for p in rendered.patches]:
            self._check_contained(rendered.spec_id, root, path)
        self._check_patch_targets(rendered, root)

        staging = _Staging(buffer=StagingBuffer(root))
        for rendered_file in rendered.files:
            self._stage_file(staging, root, rendered_file, chosen)
        for patch in rendered.patches:
            self._stage_patch(staging, root, patch, chosen)

        conflicted = staging.conflicted
        if conflicted:
            logger.info(
                "Apply of %s aborted: %d conflict(s) under %s",
                rendered.spec_id,
                len(conflicted),
                chosen.value,
            )
            return ApplyResult(
                success=False,
                strategy=chosen,
                files=tuple(o.unwritten() for o in staging.outcomes),
                error=f"{len(conflicted)} conflict(s); nothing was written",
            )

        commit = staging.buffer.commit()
        if commit.drifted:
            drifted = set(commit.drifted)
            outcomes = tuple(
                FileOutcome(o.path, FileStatus.CONFLICTED, "changed on disk during apply", o.source)
                if o.path in drifted
                else o.unwritten()
                for o in staging.outcomes
            )
            return ApplyResult(
                success=False,
                strategy=chosen,
                files=outcomes,
                error=f"{len(drifted)} path(s) changed on disk during apply; nothing was written",
            )
        if commit.error is not None:
            error = commit.error
            if commit.indeterminate:
                incomplete = SpikeforgeError(
                    ErrorCode.ROLLBACK_INCOMPLETE, {"paths": ", ".join(commit.indeterminate)}
                )
                logger.error("%s", incomplete.message)
                error = f"{error}; {incomplete.message}"
            return ApplyResult(
                success=False,
                strategy=chosen,
                files=tuple(o.unwritten() for o in staging.outcomes),
                error=error,
                indeterminate=commit.indeterminate,
            )

        logger.info(
            "Applied %s to %s (%s): %d file(s) written",
            rendered.spec_id,
            root,
            chosen.value,
            len(commit.written),
        )
        return ApplyResult(success=True, strategy=chosen, files=tuple(staging.outcomes))

    # =========================================================================
    # Pre-flight checks
    # =========================================================================

    @staticmethod
    def _check_contained(spike_id: str, root: Path, path: str) -> None:
        resolved = (root / path).resolve()
        if not resolved.is_relative_to(root):
            raise param_error(ErrorCode.UNSAFE_OUTPUT_PATH, spike=spike_id, param="", path=path)

    @staticmethod
    def _check_patch_targets(rendered: RenderedOutput, root: Path) -> None:
        produced = set(rendered.paths)
        for patch in rendered.patches:
            if patch.path in produced:
                continue
            if not (root / patch.path).is_file():
                raise patch_target_missing(rendered.spec_id, patch.path)

    # =========================================================================
    # Files
    # =========================================================================

    def _stage_file(
        self,
        staging: _Staging,
        root: Path,
        rendered_file: RenderedFile,
        strategy: ConflictStrategy,
    ) -> None:
        path = rendered_file.path
        full_path = root / path
        if full_path.is_dir():
            staging.record(path, FileStatus.CONFLICTED, "a directory exists at this path")
            return

        existing = self._read(full_path)
        if existing is None:
            staging.buffer.stage(path, rendered_file.content, None)
            staging.record(path, FileStatus.CREATED)
            return

        if strategy is ConflictStrategy.ABORT:
            staging.record(path, FileStatus.CONFLICTED, "file already exists")
            return

        base = checksum_of(existing)
        if strategy is ConflictStrategy.OVERWRITE:
            staging.buffer.stage(path, rendered_file.content, base)
            staging.record(path, FileStatus.OVERWRITTEN)
            return

        try:
            merged = merge_content(path, existing, rendered_file.content)
        except ConflictError as e:
            staging.record(path, FileStatus.CONFLICTED, e.context.get("detail", e.message))
            return

        if merged == existing.decode("utf-8"):
            staging.record(path, FileStatus.SKIPPED, "already up to date")
            return
        staging.buffer.stage(path, merged, base)
        staging.record(path, FileStatus.MERGED)

    # =========================================================================
    # Patches
    # =========================================================================

    def _stage_patch(
        self,
        staging: _Staging,
        root: Path,
        patch: RenderedPatch,
        strategy: ConflictStrategy,
    ) -> None:
        path = patch.path
        source = f"patch:{patch.operation.value}"
        full_path = root / path

        staged = staging.buffer.get(path)
        if staged is not None:
            current = staged.content
            base = staged.base_checksum
        else:
            if full_path.is_dir():
                staging.record(path, FileStatus.CONFLICTED, "a directory exists at this path", source)
                return
            existing = self._read(full_path)
            if existing is None:
                # The rendered file for this path was not staged (it conflicted)
                staging.record(path, FileStatus.CONFLICTED, "patch target was not staged", source)
                return
            try:
                current = decode_text(path, existing)
            except ConflictError as e:
                staging.record(path, FileStatus.CONFLICTED, e.context.get("detail", e.message), source)
                return
            base = checksum_of(existing)

        try:
            updated = self._patched(path, current, patch, strategy)
        except ConflictError as e:
            staging.record(path, FileStatus.CONFLICTED, e.context.get("detail", e.message), source)
            return

        if updated is None or updated == current:
            staging.record(path, FileStatus.SKIPPED, "patch already applied", source)
            return
        staging.buffer.stage(path, updated, base)
        staging.record(path, FileStatus.MERGED, source=source)

    @staticmethod
    def _patched(
        path: str,
        current: str,
        patch: RenderedPatch,
        strategy: ConflictStrategy,
    ) -> str | None:
        """New content for ``path``, or None when the patch is already applied.

        Raises:
            ConflictError: The patch cannot be applied cleanly.
        """
        op = patch.operation
        if op is PatchOperation.APPEND:
            if current.endswith(patch.content):
                return None
            separator = "" if not current or current.endswith("\n") else "\n"
            return current + separator + patch.content

        if op is PatchOperation.PREPEND:
            if current.startswith(patch.content):
                return None
            separator = "" if not current or patch.content.endswith("\n") else "\n"
            return patch.content + separator + current

        if op is PatchOperation.REPLACE:
            search = patch.search or ""
            replacement = patch.replace or ""
            if search and search in current:
                # A replacement that keeps the search text stays matchable after applying
                if search in replacement and replacement in current:
                    return None
                return current.replace(search, replacement)
            if replacement and replacement in current:
                return None
            raise ConflictError(
                code=ErrorCode.PATCH_SEARCH_MISSING,
                context={"path": path, "detail": "search text not found"},
            )

        if structured_format(path) is not None:
            return merge_structured(
                path,
                current,
                patch.content,
                prefer_incoming=strategy is ConflictStrategy.OVERWRITE,
            )
        return merge_lines(path, current, patch.content)

    @staticmethod
    def _read(path: Path) -> bytes | None:
        try:
            return read_bytes(path)
        except OSError as e:
            raise io_error(ErrorCode.FILE_READ_FAILED, str(path), e) from e


def apply_rendered(
    rendered: RenderedOutput,
    target_root: Path | str,
    strategy: ConflictStrategy | str | None = None,
) -> ApplyResult:
    """Convenience wrapper around PatchApplier.apply."""
    return PatchApplier().apply(rendered, target_root, strategy)
