"""Click entry point — all commands."""

import json
import sys

import click

from conductor_deploy import __version__, catalog, config, discovery, git, log
from conductor_deploy import deploy as deploy_mod
from conductor_deploy import gc as gc_mod
from conductor_deploy import rollback as rollback_mod
from conductor_deploy.outcome import Status
from conductor_deploy.tags import Namespace, group_by_component, parse_component_ref

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NOT_SYNCED = 3


def _settings(root: str) -> config.Settings:
    try:
        return config.load_settings(root)
    except ValueError as e:
        log.error(str(e))
        sys.exit(EXIT_FAILED)


def _fmt_date(tag) -> str:
    return f" ({tag.date.date().isoformat()})" if tag.date else ""


@click.group()
@click.version_option(version=__version__, prog_name="conductor-deploy")
@click.option(
    "--root", default=".", type=click.Path(file_okay=False), help="Project / repository root"
)
@click.pass_context
def main(ctx, root):
    """Git-tag based deploys for Conductor components."""
    ctx.obj = {"root": root}


@main.command()
@click.option(
    "--env",
    "-e",
    "environment",
    required=True,
    help="Target environment (staging, production, ...)",
)
@click.option(
    "--component", "-c", multiple=True, help="Deploy only specific component(s), as type/name"
)
@click.option("--push/--no-push", default=False, help="Force-push tags after creating them")
@click.option("--dry-run", is_flag=True, help="Show what would happen without executing")
@click.pass_context
def deploy(ctx, environment, component, push, dry_run):
    """Point environment tags for components at HEAD."""
    root = ctx.obj["root"]
    settings = _settings(root)
    components = discovery.discover(root, settings)
    try:
        if component:
            components = discovery.select(components, list(component))
        result = deploy_mod.deploy(
            root, components, environment, push=push, dry_run=dry_run, remote=settings.remote
        )
    except ValueError as e:
        log.error(str(e))
        sys.exit(EXIT_FAILED)

    if result.push_error:
        sys.exit(EXIT_NOT_SYNCED)
    sys.exit(EXIT_OK if result.ok else EXIT_FAILED)


@main.command()
@click.argument("component")
@click.option(
    "--version", "-v", "version", default=None, help="Version tag slot to roll back to, e.g. v1.2.0"
)
@click.option("--env", "-e", "environment", default=None, help="Environment tag to move")
@click.option("--push/--no-push", default=True, help="Force-push the moved environment tag")
@click.pass_context
def rollback(ctx, component, version, environment, push):
    """Move COMPONENT's environment tag back to a previous version."""
    root = ctx.obj["root"]
    settings = _settings(root)

    if version is None or environment is None:
        try:
            _, component_type, component_name = parse_component_ref(component)
        except ValueError as e:
            log.error(str(e))
            sys.exit(EXIT_FAILED)
        histories = rollback_mod.version_history(git.list_tags(root))
        history = histories.get(f"{component_type}/{component_name}", [])
        if not history:
            log.error(f"No version tags found for {component}")
        else:
            log.info(f"Versions of {component_type}/{component_name}:")
            for tag in history[:3]:
                log.step(f"• {tag.slot}{_fmt_date(tag)}")
            if len(history) > 3:
                log.step(f"... and {len(history) - 3} more")
            log.info(f"Choose one with --version and --env ({', '.join(settings.environments)})")
        sys.exit(EXIT_FAILED)

    try:
        result = rollback_mod.rollback(
            root, component, version, environment, push=push, remote=settings.remote
        )
    except ValueError as e:
        log.error(str(e))
        sys.exit(EXIT_FAILED)

    if result.ok:
        sys.exit(EXIT_OK)
    sys.exit(EXIT_NOT_SYNCED if result.status == Status.LOCAL_ONLY else EXIT_FAILED)


@main.command(name="catalog")
@click.pass_context
def catalog_cmd(ctx):
    """Show what is deployed in each environment, plus version history."""
    root = ctx.obj["root"]
    settings = _settings(root)
    cat = catalog.build_catalog(git.list_tags(root), history_limit=settings.history_limit)

    if cat.empty:
        log.info("No deployments found.")
        log.info("Deploy with: conductor-deploy deploy --env <environment>")
        return

    for env, by_type in cat.environments.items():
        log.header(f"Environment: {env}")
        for type_label, pointers in by_type.items():
            log.info(f"  {type_label}")
            for tag in pointers:
                commit = f" ({tag.commit})" if tag.commit else ""
                log.success(f"{tag.component_name}{commit}")
        log.info("")

    if cat.history:
        log.header("Version History")
        for component, versions in cat.history.items():
            log.info(f"  {component}")
            for tag in versions:
                log.step(f"  • {tag.slot}{_fmt_date(tag)}")
            hidden = cat.history_total[component] - len(versions)
            if hidden > 0:
                log.step(f"  ... and {hidden} more")


@main.command()
@click.pass_context
def sync(ctx):
    """Verify environment tags against version tags."""
    root = ctx.obj["root"]
    states = catalog.verify_pointers(git.list_tags(root))
    if not states:
        log.info("No environment tags found.")
        return

    log.header("Environment Tags")
    untagged = 0
    for state in states:
        p = state.pointer
        if state.tagged:
            versions = ", ".join(v.slot for v in state.versions)
            log.success(f"{p.component} → {p.slot} @ {p.commit} ({versions})")
        else:
            untagged += 1
            log.warn(f"{p.component} → {p.slot} @ {p.commit or '?'} (untagged)")
    log.footer(f"{len(states)} pointer(s), {untagged} untagged")


@main.command()
@click.pass_context
def validate(ctx):
    """Check that discovered components have tags."""
    root = ctx.obj["root"]
    settings = _settings(root)
    components = discovery.discover(root, settings)
    report = catalog.coverage(components, git.list_tags(root))
    if not report:
        log.info("No components found.")
        return

    for component, n in report:
        label = component.ref
        if component.namespace == Namespace.LOGIC:
            label = f"logic/{label}"
        if n:
            log.success(f"{label} ({n} tag{'s' if n != 1 else ''})")
        else:
            log.step(f"○ {label} — no tags")


@main.command()
@click.option(
    "--keep", default=None, type=click.IntRange(min=0), help="Versions to keep per component"
)
@click.option("--dry-run", is_flag=True, help="Show what would be deleted without deleting")
@click.option("--remote", is_flag=True, help="Also delete the tags from the remote")
@click.pass_context
def gc(ctx, keep, dry_run, remote):
    """Delete old version tags beyond the retention count."""
    root = ctx.obj["root"]
    settings = _settings(root)
    result = gc_mod.collect_garbage(
        root,
        keep if keep is not None else settings.keep,
        dry_run=dry_run,
        remote=remote,
        remote_name=settings.remote,
    )
    if result.error:
        sys.exit(EXIT_FAILED)
    if result.remote_failed:
        sys.exit(EXIT_NOT_SYNCED)
    sys.exit(EXIT_OK if result.ok else EXIT_FAILED)


@main.command(name="tags")
@click.argument("component", required=False)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def tags_cmd(ctx, component, as_json):
    """List deployment tags, for all components or one."""
    root = ctx.obj["root"]
    patterns = None
    if component:
        try:
            namespace, component_type, component_name = parse_component_ref(component)
        except ValueError as e:
            log.error(str(e))
            sys.exit(EXIT_FAILED)
        prefixes = [namespace.value] if namespace else [n.value for n in Namespace]
        patterns = [f"{p}/{component_type}/{component_name}/*" for p in prefixes]
    found = git.list_tags(root, patterns)

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "tag": t.name,
                        "commit": t.commit,
                        "date": t.date.isoformat() if t.date else None,
                        "type": "version" if t.is_version else "environment",
                        "namespace": t.namespace.value,
                        "componentType": t.component_type,
                        "componentName": t.component_name,
                        "slot": t.slot,
                    }
                    for t in found
                ],
                indent=2,
            )
        )
        return

    if not found:
        log.info(f"No tags found{' for ' + component if component else ''}.")
        return

    for name, group in group_by_component(found).items():
        log.group_start(name)
        for t in group:
            kind = "version" if t.is_version else "environment"
            log.step(f"{t.slot:<16} {t.commit:<10} {kind}{_fmt_date(t)}")
        log.group_end()


if __name__ == "__main__":
    main()
