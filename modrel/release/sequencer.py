"""Release-state sequencer.

A release is a linear walk over `ReleaseState` with one branch point after
the archive is built:

    start -> preflight-checked -> staged -> archive-built
        trial: -> installed -> done
        real:  -> changelog-written -> version-persisted -> committed
               -> tagged -> pushed -> done

Each transition has one handler that performs the work needed to *enter* the
target state and returns an updated context. The first `Err` stops the walk.
Nothing is rolled back: a commit or tag that was created stays, and ordering
(tag only after commit, push only after tag) keeps a partial failure to
"local commit/tag exists but was not pushed".

In rehearsal mode the refusals of preflight, tag and push checks are printed
as warnings and the run continues; the version file write, commit, tag and
push are printed instead of performed.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from modrel.core.result import Err, Ok, Result
from modrel.output.console import ConsoleProtocol, Style
from modrel.release import staging
from modrel.release.changelog import (
    commit_message_from,
    read_changelog,
    render_draft,
    resolve_editor,
    write_draft,
)
from modrel.release.changelog import edit as edit_changelog
from modrel.release.contracts import VersionControl
from modrel.release.errors import ReleaseError, vcs_failed
from modrel.release.install import install_archive, resolve_install_dir
from modrel.release.model import ReleaseContext, ReleaseKind, ReleaseState
from modrel.release.semver import exists_as_tag, write_version_file

StepHandler = Callable[[ReleaseContext], Result[ReleaseContext, ReleaseError]]
OnTransition = Callable[[ReleaseContext], None]

TRIAL_PATH: tuple[ReleaseState, ...] = (
    ReleaseState.START,
    ReleaseState.PREFLIGHT_CHECKED,
    ReleaseState.STAGED,
    ReleaseState.ARCHIVE_BUILT,
    ReleaseState.INSTALLED,
    ReleaseState.DONE,
)

REAL_PATH: tuple[ReleaseState, ...] = (
    ReleaseState.START,
    ReleaseState.PREFLIGHT_CHECKED,
    ReleaseState.STAGED,
    ReleaseState.ARCHIVE_BUILT,
    ReleaseState.CHANGELOG_WRITTEN,
    ReleaseState.VERSION_PERSISTED,
    ReleaseState.COMMITTED,
    ReleaseState.TAGGED,
    ReleaseState.PUSHED,
    ReleaseState.DONE,
)


def release_path(kind: ReleaseKind) -> tuple[ReleaseState, ...]:
    return TRIAL_PATH if kind.is_trial else REAL_PATH


def next_state(kind: ReleaseKind, state: ReleaseState) -> ReleaseState | None:
    """The state after `state` on the path for `kind`, or None if there is none."""
    path = release_path(kind)
    if state not in path:
        return None
    idx = path.index(state)
    if idx + 1 >= len(path):
        return None
    return path[idx + 1]


def _ignore_transition(ctx: ReleaseContext) -> None:
    del ctx


def run_state_machine(
    *,
    initial: ReleaseContext,
    handlers: Mapping[ReleaseState, StepHandler],
    on_transition: OnTransition = _ignore_transition,
) -> Result[ReleaseContext, ReleaseError]:
    current = initial

    while current.state != ReleaseState.DONE:
        target = next_state(current.request.kind, current.state)
        handler = handlers.get(target) if target is not None else None
        if target is None or handler is None:
            return Err(
                ReleaseError(
                    kind="invalid_input",
                    message=f"no release step leads out of state: {current.state}",
                )
            )

        outcome = handler(current)
        if isinstance(outcome, Err):
            return outcome

        current = replace(outcome.value, state=target)
        on_transition(current)

    return Ok(current)


_STATE_LABELS: dict[ReleaseState, str] = {
    ReleaseState.PREFLIGHT_CHECKED: "preflight checks passed",
    ReleaseState.STAGED: "release files staged",
    ReleaseState.ARCHIVE_BUILT: "archive built",
    ReleaseState.INSTALLED: "trial archive installed",
    ReleaseState.CHANGELOG_WRITTEN: "changelog written",
    ReleaseState.VERSION_PERSISTED: "version file updated",
    ReleaseState.COMMITTED: "release committed",
    ReleaseState.TAGGED: "release tagged",
    ReleaseState.PUSHED: "pushed to remote",
}


def _os_environ() -> Mapping[str, str]:
    return dict(os.environ)


@dataclass(slots=True)
class ReleaseSequencer:
    """Drives one release run over its collaborators."""

    vcs: VersionControl
    console: ConsoleProtocol
    env: Mapping[str, str] = field(default_factory=_os_environ)

    def handlers(self) -> dict[ReleaseState, StepHandler]:
        return {
            ReleaseState.PREFLIGHT_CHECKED: self.preflight,
            ReleaseState.STAGED: self.stage,
            ReleaseState.ARCHIVE_BUILT: self.build_archive,
            ReleaseState.INSTALLED: self.install,
            ReleaseState.CHANGELOG_WRITTEN: self.write_changelog,
            ReleaseState.VERSION_PERSISTED: self.persist_version,
            ReleaseState.COMMITTED: self.commit,
            ReleaseState.TAGGED: self.tag,
            ReleaseState.PUSHED: self.push,
            ReleaseState.DONE: self.finish,
        }

    def run(self, ctx: ReleaseContext) -> Result[ReleaseContext, ReleaseError]:
        return run_state_machine(
            initial=ctx,
            handlers=self.handlers(),
            on_transition=self._report,
        )

    # -- steps ---------------------------------------------------------------

    def preflight(self, ctx: ReleaseContext) -> Result[ReleaseContext, ReleaseError]:
        kind = ctx.request.kind
        if not kind.is_trial or ctx.config.release.trial_preflight:
            for check in (self._check_clean, self._check_remote):
                checked = check(ctx)
                if isinstance(checked, Err):
                    return checked

        if not kind.is_trial:
            exists = exists_as_tag(ctx.target_version, self.vcs)
            if isinstance(exists, Err):
                return exists
            if exists.value:
                refused = self._refuse(ctx, self._duplicate(ctx))
                if isinstance(refused, Err):
                    return refused

            ignored = self._check_ignored(ctx)
            if isinstance(ignored, Err):
                return ignored

        return Ok(ctx)

    def stage(self, ctx: ReleaseContext) -> Result[ReleaseContext, ReleaseError]:
        release_dir = ctx.staging_directory
        keep = ctx.config.release.keep

        if release_dir.is_dir():
            self.console.print(f"git clean -f -d -x -- {release_dir.name}", Style.DIM)
            cleaned = self.vcs.clean(release_dir, include_ignored=True, keep=keep)
            if isinstance(cleaned, Err):
                return Err(vcs_failed("failed to clean release directory", cleaned.error))

        cleared = staging.clear(release_dir, keep=keep)
        if isinstance(cleared, Err):
            return cleared

        collected = staging.collect_release_files(
            ctx.repository_root, ctx.request.module_name, ctx.config.module
        )
        if isinstance(collected, Err):
            return collected
        files, templated = collected.value

        staged = staging.stage(
            files,
            release_dir,
            version_token=ctx.config.release.version_token,
            version=str(ctx.target_version),
            templated=templated,
        )
        if isinstance(staged, Err):
            return staged

        for path in staged.value:
            self.console.print(f"  {path.name}", Style.DIM)
        return Ok(ctx)

    def build_archive(self, ctx: ReleaseContext) -> Result[ReleaseContext, ReleaseError]:
        output = ctx.staging_directory / ctx.archive_name
        built = staging.archive(ctx.staging_directory, ctx.config.release.archive_exclude, output)
        if isinstance(built, Err):
            return built

        self.console.print(f"{output} ({len(built.value)} files)", Style.DIM)
        return Ok(replace(ctx, archive_path=output))

    def install(self, ctx: ReleaseContext) -> Result[ReleaseContext, ReleaseError]:
        if ctx.archive_path is None:
            return Err(ReleaseError(kind="invalid_input", message="no archive to install"))

        install_dir = resolve_install_dir(ctx.config.install, self.env)
        if isinstance(install_dir, Err):
            return install_dir

        installed = install_archive(ctx.archive_path, install_dir.value)
        if isinstance(installed, Err):
            return installed

        self.console.print(f"-> {installed.value}", Style.DIM)
        return Ok(replace(ctx, installed_path=installed.value))

    def write_changelog(self, ctx: ReleaseContext) -> Result[ReleaseContext, ReleaseError]:
        # Commits since the previous release: the pre-bump version's tag.
        previous = str(ctx.current_version)
        has_previous = exists_as_tag(ctx.current_version, self.vcs)
        if isinstance(has_previous, Err):
            return has_previous
        since = previous if has_previous.value else None
        if since is None:
            self.console.print(f"no tag {previous}; using the full history", Style.DIM)

        log = self.vcs.log_since(since)
        if isinstance(log, Err):
            return Err(vcs_failed("failed to read commit history", log.error))
        entries = tuple(log.value)

        path = ctx.changelog_path
        written = write_draft(path, render_draft(ctx.release_title, entries))
        if isinstance(written, Err):
            return written

        editor = resolve_editor(self.env, self.vcs)
        if isinstance(editor, Err):
            return editor

        self.console.print(f"{' '.join(editor.value)} {path}", Style.DIM)
        edited = edit_changelog(path, editor.value, cwd=ctx.repository_root)
        if isinstance(edited, Err):
            return edited

        text = read_changelog(path)
        if isinstance(text, Err):
            return text
        message = commit_message_from(text.value)
        if isinstance(message, Err):
            return message

        return Ok(replace(ctx, changelog_entries=entries, commit_message=message.value))

    def persist_version(self, ctx: ReleaseContext) -> Result[ReleaseContext, ReleaseError]:
        if ctx.mode.is_rehearsal:
            self.console.warning(
                f"rehearsal: {ctx.config.release.version_file} not written "
                f"(would be {ctx.target_version})"
            )
            return Ok(ctx)

        written = write_version_file(ctx.version_file, ctx.target_version)
        if isinstance(written, Err):
            return written
        return Ok(ctx)

    def commit(self, ctx: ReleaseContext) -> Result[ReleaseContext, ReleaseError]:
        message = ctx.commit_message
        if message is None:
            return Err(ReleaseError(kind="invalid_input", message="no commit message"))

        subject = message.splitlines()[0]
        self.console.print(f"git add -- {ctx.config.release.version_file}", Style.DIM)
        self.console.print(f"git commit -m {subject!r}", Style.DIM)
        if ctx.mode.is_rehearsal:
            self.console.warning("rehearsal: commit skipped")
            return Ok(ctx)

        added = self.vcs.add([ctx.version_file])
        if isinstance(added, Err):
            return Err(vcs_failed("git add failed", added.error))

        committed = self.vcs.commit(message)
        if isinstance(committed, Err):
            return Err(vcs_failed("git commit failed", committed.error))

        clean = self.vcs.is_clean(ignore_submodules=True)
        if isinstance(clean, Err):
            return Err(vcs_failed("failed to check git status", clean.error))
        if not clean.value:
            return Err(
                ReleaseError(
                    kind="precondition_failed",
                    message="working tree is not clean after the release commit",
                    hint="A hook or another process changed files; inspect `git status`.",
                )
            )
        return Ok(ctx)

    def tag(self, ctx: ReleaseContext) -> Result[ReleaseContext, ReleaseError]:
        exists = exists_as_tag(ctx.target_version, self.vcs)
        if isinstance(exists, Err):
            return exists
        if exists.value:
            refused = self._refuse(ctx, self._duplicate(ctx))
            if isinstance(refused, Err):
                return refused

        self.console.print(f"git tag -a {ctx.tag_name} -m {ctx.release_title!r}", Style.DIM)
        if ctx.mode.is_rehearsal:
            self.console.warning("rehearsal: tag skipped")
            return Ok(ctx)

        created = self.vcs.create_tag(ctx.tag_name, ctx.release_title)
        if isinstance(created, Err):
            return Err(vcs_failed(f"failed to create tag {ctx.tag_name}", created.error))
        return Ok(ctx)

    def push(self, ctx: ReleaseContext) -> Result[ReleaseContext, ReleaseError]:
        # The changelog edit can take arbitrarily long; look again.
        for check in (self._check_clean, self._check_remote):
            checked = check(ctx)
            if isinstance(checked, Err):
                return checked

        self.console.print("git push --follow-tags", Style.DIM)
        if ctx.mode.is_rehearsal:
            self.console.warning("rehearsal: push skipped")
            return Ok(ctx)

        pushed = self.vcs.push(with_tags=True)
        if isinstance(pushed, Err):
            return Err(
                ReleaseError(
                    kind="vcs_failed",
                    message="git push failed",
                    hint=(
                        f"{pushed.error.message}; commit and tag {ctx.tag_name} exist locally, "
                        "run `git push --follow-tags` once fixed"
                    ),
                )
            )
        return Ok(ctx)

    def finish(self, ctx: ReleaseContext) -> Result[ReleaseContext, ReleaseError]:
        return Ok(ctx)

    # -- checks --------------------------------------------------------------

    def _check_clean(self, ctx: ReleaseContext) -> Result[None, ReleaseError]:
        clean = self.vcs.is_clean(ignore_submodules=True)
        if isinstance(clean, Err):
            return self._refuse(ctx, vcs_failed("failed to check git status", clean.error))
        if clean.value:
            return Ok(None)
        return self._refuse(
            ctx,
            ReleaseError(
                kind="precondition_failed",
                message="working tree has staged, modified or untracked files",
                hint="Commit or stash them, or rehearse with --allow-dirty.",
            ),
        )

    def _check_remote(self, ctx: ReleaseContext) -> Result[None, ReleaseError]:
        synced = self.vcs.is_up_to_date_with_remote()
        if isinstance(synced, Err):
            return self._refuse(ctx, vcs_failed("failed to compare with remote", synced.error))
        if synced.value:
            return Ok(None)
        return self._refuse(
            ctx,
            ReleaseError(
                kind="precondition_failed",
                message="branch is not up to date with its remote tracking branch",
                hint="Set an upstream and pull before releasing.",
            ),
        )

    def _check_ignored(self, ctx: ReleaseContext) -> Result[None, ReleaseError]:
        # Staged output must never show up in the post-commit cleanliness check.
        release_dir = ctx.staging_directory
        module = ctx.config.module
        name = ctx.request.module_name
        rels = [module.source_for(name), module.manifest_for(name), *module.assets_for(name)]
        outputs = [
            *(release_dir / Path(rel).name for rel in rels),
            release_dir / ctx.archive_name,
            ctx.changelog_path,
        ]

        tracked: list[str] = []
        for path in outputs:
            ignored = self.vcs.is_ignored(path)
            if isinstance(ignored, Err):
                return self._refuse(ctx, vcs_failed("failed to query .gitignore", ignored.error))
            if not ignored.value:
                tracked.append(path.name)

        if not tracked:
            return Ok(None)
        return self._refuse(
            ctx,
            ReleaseError(
                kind="precondition_failed",
                message=f"release output is not ignored by git: {', '.join(tracked)}",
                hint=(
                    f"Add `{release_dir.name}/*` and `!{release_dir.name}/.gitignore` "
                    "to .gitignore."
                ),
            ),
        )

    def _duplicate(self, ctx: ReleaseContext) -> ReleaseError:
        return ReleaseError(
            kind="duplicate_version",
            message=f"tag {ctx.tag_name} already exists",
            hint="That version was already released; bump again or fix the version file.",
        )

    def _refuse(self, ctx: ReleaseContext, error: ReleaseError) -> Result[None, ReleaseError]:
        """Abort on `error`, or downgrade it to a warning when rehearsing."""
        if ctx.mode.is_rehearsal:
            self.console.warning(f"rehearsal: {error.message}")
            return Ok(None)
        return Err(error)

    def _report(self, ctx: ReleaseContext) -> None:
        label = _STATE_LABELS.get(ctx.state)
        if label is not None:
            self.console.success(label)
