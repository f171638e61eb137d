"""Click option helpers: mutual exclusion and content type lists."""
import click


def _check_exclusive(name: str, exclusive_with: list[str], opts: dict) -> None:
    """Raise UsageError if an exclusive option was given together with name.

    Args:
        name: Name of the current option.
        exclusive_with: Names of options that cannot be combined with it.
        opts: Dictionary of parsed options.

    Raises:
        click.UsageError: If a conflicting option is present.
    """
    for other in exclusive_with:
        if other in opts:
            first, second = (f"--{n.replace('_', '-')}" for n in (name, other))
            raise click.UsageError(f"Options {first} and {second} are mutually exclusive")


class MutuallyExclusiveOption(click.Option):
    """Click option that cannot be combined with the options it names."""

    def __init__(self, *args, **kwargs):
        """Initialize with exclusive_with listing conflicting option names."""
        self.exclusive_with = kwargs.pop("exclusive_with", [])
        super().__init__(*args, **kwargs)

    def handle_parse_result(self, ctx, opts, args):
        """Check for conflicting options given on the command line."""
        if self.name in opts:
            _check_exclusive(self.name, self.exclusive_with, opts)
        return super().handle_parse_result(ctx, opts, args)


class ContentTypeList(click.ParamType):
    """Comma-separated content types in priority order, e.g. "text/plain,image/png"."""

    name = "content-types"

    def convert(self, value, param, ctx):
        if isinstance(value, tuple):
            return value
        types = tuple(t.strip() for t in value.split(",") if t.strip())
        if not types:
            self.fail("at least one content type is required", param, ctx)
        for content_type in types:
            if "/" not in content_type:
                self.fail(f"{content_type!r} is not a content type", param, ctx)
        if len(set(types)) != len(types):
            self.fail("content types must not repeat", param, ctx)
        return types
