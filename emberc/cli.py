"""
Command-line interface for the Ember compiler.

    emberc hello.em                 # hello.ll, hello.s, hello
    emberc hello.em --emit ll       # stop after hello.ll
    emberc hello.em --emit ast      # print the syntax tree
    emberc hello.em --emit tokens   # print the token stream

Author: xwest
"""

from typing import List, Optional
import argparse
import os
import sys

from . import __version__
from .backend.llvm_backend import BuildDriver, BuildOptions
from .driver import compile_file
from .lexer.lexer import Lexer
from .parser.ast_nodes import dump

# Stages handled by the front end alone
FRONT_END_STAGES = ('tokens', 'ast')


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser whose usage errors exit with status 1."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="emberc",
        description="Compile an Ember source file to a native executable",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    emberc hello.em                    # Build hello.ll, hello.s and hello
    emberc hello.em -o build --emit asm
    emberc hello.em --emit ast         # Dump the syntax tree, no toolchain
    emberc hello.em --emit tokens      # List tokens, no toolchain

Environment:
    EMBER_LLC, EMBER_CC                # Default tool paths
        """
    )

    parser.add_argument('source', help='Ember source file')

    # Output options
    parser.add_argument('-o', '--output-dir', default='.', metavar='DIR',
                        help='Directory for generated files (default: current directory)')
    parser.add_argument('--emit', choices=['tokens', 'ast', 'll', 'asm', 'exe'], default='exe',
                        help='Last artifact to produce (default: exe)')

    # Toolchain options
    parser.add_argument('-O', dest='opt_level', type=int, choices=[0, 1, 2, 3], default=0,
                        help='Optimization level passed to llc')
    parser.add_argument('--llc', metavar='PATH', help='llc executable')
    parser.add_argument('--cc', metavar='PATH', help='C compiler driver used to link')
    parser.add_argument('-l', dest='link_libs', action='append', default=[], metavar='LIB',
                        help='Link against LIB (repeatable)')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Print progress and toolchain commands')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    return parser


def _report(diagnostics):
    for diagnostic in diagnostics:
        print(diagnostic, end="", file=sys.stderr)


def _progress(args, message: str):
    if args.verbose:
        print(f"🔄 {message}", file=sys.stderr)


def _cannot_read(path: str, error: Exception) -> int:
    reason = getattr(error, "strerror", None) or error
    print(f"emberc: error: cannot read '{path}': {reason}", file=sys.stderr)
    return 1


def _print_tokens(path: str):
    """Print one ``location: TYPE('lexeme')`` line per token."""
    with open(path, "r", encoding="utf-8") as f:
        lexer = Lexer(f, path)
        for token in lexer:
            print(f"{token.location}: {token}")
    _report(lexer.warnings)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the compiler.

    Returns:
        Process exit status
    """
    args = build_arg_parser().parse_args(argv)

    if args.emit == 'tokens':
        try:
            _print_tokens(args.source)
        except (OSError, UnicodeDecodeError) as e:
            return _cannot_read(args.source, e)
        return 0

    overrides = {}
    if args.llc:
        overrides['llc'] = args.llc
    if args.cc:
        overrides['cc'] = args.cc
    options = BuildOptions(
        output_dir=args.output_dir,
        opt_level=args.opt_level,
        emit='exe' if args.emit in FRONT_END_STAGES else args.emit,
        link_libs=args.link_libs,
        verbose=args.verbose,
        **overrides
    )
    driver = BuildDriver(options)

    _progress(args, f"Compiling {args.source}")
    try:
        result = compile_file(
            args.source,
            module_name=os.path.basename(args.source),
            target_triple=options.resolve_triple()
        )
    except (OSError, UnicodeDecodeError) as e:
        return _cannot_read(args.source, e)

    _report(result.diagnostics)

    if args.emit == 'ast':
        print(dump(result.program))
        return 0

    _progress(args, f"Building {driver.output_base(args.source)} ({args.emit})")
    build = driver.build(result.module, args.source)
    if not build.success:
        print(build.error, end="", file=sys.stderr)
        return 1

    for artifact in build.artifacts:
        _progress(args, f"Wrote {artifact}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
