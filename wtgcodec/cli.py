#!/usr/bin/env python3
"""
Command line tools for war3map.wtg trigger files.

Usage:
    wtgcodec copy INPUT OUTPUT [--target-version {4,7}] [--verify]
    wtgcodec validate INPUT
    wtgcodec list INPUT [--detailed]
    wtgcodec check INPUT
    wtgcodec diff OLD NEW

Examples:
    # Re-encode a file, confirming the output matches the input byte for byte
    wtgcodec copy war3map.wtg out.wtg --verify

    # Downgrade to the Reign of Chaos layout
    wtgcodec copy war3map.wtg roc.wtg --target-version 4

    # Decode with the game's full signature table (options may follow the command)
    wtgcodec validate war3map.wtg --trigger-data TriggerData.txt
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from wtgcodec.const import DEFAULT_MAX_DEPTH, MAX_DEPTH_LIMIT, VALIDATE_PREVIEW_LIMIT
from wtgcodec.diff import SectionDiff, diff_documents, first_byte_difference
from wtgcodec.enums import EcaBranch, ParameterKind
from wtgcodec.errors import CodecError
from wtgcodec.layouts import LAYOUTS
from wtgcodec.log import log
from wtgcodec.model.document import Document, Trigger
from wtgcodec.model.functions import Function, Parameter
from wtgcodec.model.parts import SerializationContext
from wtgcodec.trigger_data import TriggerData
from wtgcodec.validation import check_document


class CliArgumentParser(argparse.ArgumentParser):
    """ArgumentParser whose usage errors exit with status 1."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, f'error: {message}\n')


def build_context(args: argparse.Namespace, check_references: bool | None = None) -> SerializationContext:
    """Create the serialization context from global options."""
    trigger_data = TriggerData.default()
    if args.trigger_data is not None:
        trigger_data = trigger_data.merged(TriggerData.load(args.trigger_data))
    if check_references is None:
        check_references = not args.no_reference_check
    return SerializationContext(
        trigger_data=trigger_data,
        max_depth=args.max_depth,
        check_references=check_references,
    )


def print_counts(document: Document, indent: str = '  ') -> None:
    print(f'{indent}Variables: {len(document.variables)}')
    print(f'{indent}Triggers: {len(document.triggers)}')
    print(f'{indent}Categories: {len(document.categories)}')


def format_parameter(parameter: Parameter) -> str:
    """Render a parameter the way it reads in the trigger editor."""
    if parameter.kind == ParameterKind.FUNCTION and parameter.function is not None:
        text = format_call(parameter.function)
    elif parameter.kind == ParameterKind.STRING:
        text = f'"{parameter.value}"'
    else:
        text = parameter.value
    if parameter.array_index is not None:
        text += f'[{format_parameter(parameter.array_index)}]'
    return text


def format_call(function: Function) -> str:
    arguments = ', '.join(format_parameter(p) for p in function.parameters)
    return f'{function.name}({arguments})'


def format_function_tree(function: Function, indent: str) -> list[str]:
    """Render a function and its child blocks, one line per node."""
    label = function.kind.name.capitalize()
    if function.branch is not None:
        try:
            label = f'[{EcaBranch(function.branch).name.lower()}] {label}'
        except ValueError:
            label = f'[{function.branch}] {label}'
    disabled = '' if function.is_enabled else ' [DISABLED]'
    lines = [f'{indent}{label}: {format_call(function)}{disabled}']
    for child in function.children:
        lines.extend(format_function_tree(child, indent + '  '))
    return lines


def format_trigger(trigger: Trigger, detailed: bool) -> list[str]:
    markers = ''
    if not trigger.is_enabled:
        markers += ' [DISABLED]'
    if trigger.is_comment:
        markers += ' [COMMENT]'
    if trigger.is_custom_text:
        markers += ' [CUSTOM TEXT]'
    if not trigger.is_initially_on:
        markers += ' [OFF]'
    if trigger.run_on_map_init:
        markers += ' [INIT]'
    lines = [f'  - {trigger.name}{markers}']
    if detailed:
        if trigger.description:
            lines.append(f'      Description: {trigger.description}')
        for function in trigger.functions:
            lines.extend(format_function_tree(function, '      '))
    return lines


def format_section(title: str, section: SectionDiff) -> list[str]:
    lines = [f'{title}:']
    lines.extend(f'  + {name}' for name in section.added)
    lines.extend(f'  - {name}' for name in section.removed)
    lines.extend(f'  ~ {name}' for name in section.changed)
    if section.is_empty:
        lines.append('  (no changes)')
    return lines


def cmd_copy(args: argparse.Namespace) -> int:
    ctx = build_context(args)

    print(f'Reading WTG from: {args.input}')
    data = args.input.read_bytes()
    document, variance = Document.decode(data, ctx)
    print('WTG loaded successfully')
    print_counts(document)

    target = document.version if args.target_version is None else args.target_version
    print(f'Writing WTG to: {args.output} (format {target})')
    document.save(args.output, version=target, ctx=ctx)
    print(f'Wrote {args.output.stat().st_size} bytes')

    if args.verify:
        output_data = args.output.read_bytes()
        copied = Document.from_bytes(output_data, ctx)
        if copied != replace(document, version=target):
            args.output.unlink()
            print(f'error: {args.output} does not decode to the input model, removed it', file=sys.stderr)
            return 1
        if target != document.version:
            print('Verified: output decodes to the same model')
            return 0

        offset = first_byte_difference(data, output_data, ignore=variance)
        if offset is not None:
            args.output.unlink()
            print(
                f'error: {args.output} differs from the input, removed it. '
                f'First differing byte at offset {offset:#x} '
                f'(input: {data[offset : offset + 8].hex(" ") or "end of file"}, '
                f'output: {output_data[offset : offset + 8].hex(" ") or "end of file"})',
                file=sys.stderr,
            )
            return 1
        print('Verified: output is byte-identical to the input')
        if variance:
            print(f'  ignored {len(variance)} tolerated variance region(s) in the input')
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    ctx = build_context(args)

    print(f'Validating WTG: {args.input}')
    document = Document.load(args.input, ctx)
    print('WTG is valid')
    print_counts(document)

    variables = list(document.variables.values())
    for variable in variables[:VALIDATE_PREVIEW_LIMIT]:
        print(f'    {variable.name} ({variable.type_name})')
    if len(variables) > VALIDATE_PREVIEW_LIMIT:
        print(f'    ... and {len(variables) - VALIDATE_PREVIEW_LIMIT} more')
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    ctx = build_context(args)
    document = Document.load(args.input, ctx)

    layout = LAYOUTS[document.version]
    print(f'Format version: {document.version} ({layout.name})')
    print(f'Game version: {document.game_version}')
    print()

    if document.variables:
        print(f'Global variables ({len(document.variables)}):')
        for variable in document.variables.values():
            array_info = f'[{variable.array_size}]' if variable.is_array else ''
            initial = f' = {variable.initial_value}' if variable.is_initialized else ''
            print(f'  - {variable.name}: {variable.type_name}{array_info}{initial}')
        print()

    if not document.triggers and not document.categories:
        print('No triggers found')
        return 0

    print(f'Categories ({len(document.categories)}), triggers ({len(document.triggers)}):')
    for category in document.categories:
        comment = ' [COMMENT]' if category.is_comment else ''
        suffix = f' (id {category.id})' if args.detailed else ''
        print(f'[{category.name}]{comment}{suffix}')
        for trigger in document.triggers_in(category):
            for line in format_trigger(trigger, args.detailed):
                print(line)

    category_ids = {category.id for category in document.categories}
    orphans = [t for t in document.triggers if t.category_id not in category_ids]
    if orphans:
        print('[(missing category)]')
        for trigger in orphans:
            for line in format_trigger(trigger, args.detailed):
                print(line)
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    # Decode without reference checks so every problem can be reported
    ctx = build_context(args, check_references=False)
    document = Document.load(args.input, ctx)
    report = check_document(document)

    print(f'Health check: {args.input}')
    for problem in report.problems:
        print(f'  {problem}')
    print(f'{len(report.errors)} errors, {len(report.warnings)} warnings')
    return 0 if report.ok else 1


def cmd_diff(args: argparse.Namespace) -> int:
    ctx = build_context(args)
    old_data = args.old.read_bytes()
    new_data = args.new.read_bytes()
    old = Document.from_bytes(old_data, ctx)
    new = Document.from_bytes(new_data, ctx)

    result = diff_documents(old, new)
    print(f'Format versions: {result.versions[0]} -> {result.versions[1]}')
    for line in format_section('Categories', result.categories):
        print(line)
    for line in format_section('Triggers', result.triggers):
        print(line)
    for line in format_section('Variables', result.variables):
        print(line)
    if result.variable_order_changed:
        print('  variable order changed')

    offset = first_byte_difference(old_data, new_data)
    if offset is None:
        print('Files are byte-identical')
    else:
        print(f'First differing byte at offset {offset:#x}')
    return 0


def depth_bound(text: str) -> int:
    """argparse type for --max-depth."""
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f'invalid depth: {text!r}') from None
    if not 1 <= value <= MAX_DEPTH_LIMIT:
        raise argparse.ArgumentTypeError(f'depth must be between 1 and {MAX_DEPTH_LIMIT}, got {value}')
    return value


def add_global_options(parser: argparse.ArgumentParser, with_defaults: bool) -> None:
    """Options shared by every command.

    They are accepted before and after the command name. Copies on the
    subcommands have no defaults so they do not override values given
    before the command.
    """

    def default(value: object) -> object:
        return value if with_defaults else argparse.SUPPRESS

    parser.add_argument(
        '--trigger-data',
        type=Path,
        default=default(None),
        help='TriggerData.txt with extra function signatures, merged over the built-in table',
    )
    parser.add_argument(
        '--max-depth',
        type=depth_bound,
        default=default(DEFAULT_MAX_DEPTH),
        help=f'Maximum function nesting depth, 1 to {MAX_DEPTH_LIMIT} (default: {DEFAULT_MAX_DEPTH})',
    )
    parser.add_argument(
        '--no-reference-check',
        action='store_true',
        default=default(False),
        help='Skip category and variable reference checks',
    )
    parser.add_argument('--verbose', '-v', action='store_true', default=default(False), help='Enable debug logging')


def build_parser() -> argparse.ArgumentParser:
    parser = CliArgumentParser(prog='wtgcodec', description='Read, write and inspect war3map.wtg trigger files')
    add_global_options(parser, with_defaults=True)
    common = argparse.ArgumentParser(add_help=False)
    add_global_options(common, with_defaults=False)

    subparsers = parser.add_subparsers(dest='command', required=True)

    copy_parser = subparsers.add_parser('copy', parents=[common], help='Decode and re-encode a trigger file')
    copy_parser.add_argument('input', type=Path, help='Input .wtg file')
    copy_parser.add_argument('output', type=Path, help='Output .wtg file')
    copy_parser.add_argument(
        '--target-version',
        type=int,
        choices=sorted(LAYOUTS),
        default=None,
        help='Format version to write (default: same as input)',
    )
    copy_parser.add_argument(
        '--verify',
        action='store_true',
        help='Decode the output again and compare it with the input',
    )
    copy_parser.set_defaults(handler=cmd_copy)

    validate_parser = subparsers.add_parser(
        'validate', parents=[common], help='Decode a trigger file and print a summary'
    )
    validate_parser.add_argument('input', type=Path, help='Input .wtg file')
    validate_parser.set_defaults(handler=cmd_validate)

    list_parser = subparsers.add_parser('list', parents=[common], help='List categories, triggers and variables')
    list_parser.add_argument('input', type=Path, help='Input .wtg file')
    list_parser.add_argument('--detailed', '-d', action='store_true', help='Print every trigger function')
    list_parser.set_defaults(handler=cmd_list)

    check_parser = subparsers.add_parser('check', parents=[common], help='Report reference errors and warnings')
    check_parser.add_argument('input', type=Path, help='Input .wtg file')
    check_parser.set_defaults(handler=cmd_check)

    diff_parser = subparsers.add_parser('diff', parents=[common], help='Compare two trigger files')
    diff_parser.add_argument('old', type=Path, help='First .wtg file')
    diff_parser.add_argument('new', type=Path, help='Second .wtg file')
    diff_parser.set_defaults(handler=cmd_diff)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return 0 if e.code is None else int(e.code)

    if args.verbose:
        log.setLevel(logging.DEBUG)

    try:
        return args.handler(args)
    except (CodecError, OSError) as e:
        log.debug(f'{args.command} failed', exc_info=True)
        print(f'error: {e}', file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
