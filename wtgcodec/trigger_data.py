"""
Function signature table for WTG decoding.

WTG files do not store how many parameters a function has; the count comes
from the game's TriggerData.txt. That file is INI-like:

    [TriggerActions]
    // comment
    SetVariable=0,AnyGlobal,null
    _SetVariable_Category=TC_NOTHING

Event, condition and action entries are `version,arg,arg,...`. Call entries
are `version,events-flag,return-type,arg,arg,...`. Keys starting with `_`
are editor metadata. An argument list of `nothing` means no arguments.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from wtgcodec.enums import FunctionKind
from wtgcodec.log import log

SECTION_KINDS = {
    'TriggerEvents': FunctionKind.EVENT,
    'TriggerConditions': FunctionKind.CONDITION,
    'TriggerActions': FunctionKind.ACTION,
    'TriggerCalls': FunctionKind.CALL,
}

NO_ARGUMENTS = 'nothing'

# Common GUI functions, enough for editor-made maps that only use the basics.
# Load the game's TriggerData.txt for anything beyond this.
BUILTIN_TRIGGER_DATA = '''
[TriggerEvents]
MapInitializationEvent=0
TriggerRegisterTimerEventSingle=0,real
TriggerRegisterTimerEventPeriodic=0,real
TriggerRegisterAnyUnitEventBJ=0,playerunitevent
TriggerRegisterPlayerUnitEventSimple=0,player,playerunitevent
TriggerRegisterUnitEvent=0,unit,unitevent
TriggerRegisterPlayerChatEvent=0,player,string,chatmatchtype
TriggerRegisterPlayerEventLeave=0,player
TriggerRegisterEnterRectSimple=0,rect
TriggerRegisterLeaveRectSimple=0,rect

[TriggerConditions]
OperatorCompareBoolean=0,boolean,EqualNotEqualOperator,boolean
OperatorCompareInteger=0,integer,ComparisonOperator,integer
OperatorCompareReal=0,real,ComparisonOperator,real
OperatorCompareString=0,string,EqualNotEqualOperator,string
OperatorCompareUnit=0,unit,EqualNotEqualOperator,unit
OperatorComparePlayer=0,player,EqualNotEqualOperator,player
AndMultiple=1,nothing
OrMultiple=1,nothing

[TriggerActions]
DoNothing=0,nothing
CustomScriptCode=1,scriptcode
SetVariable=0,AnyGlobal,null
IfThenElseMultiple=1,nothing
IfThenElse=0,boolcall,code,code
ForLoopAMultiple=1,integer,integer
ForLoopBMultiple=1,integer,integer
ForLoopVarMultiple=1,integervar,integer,integer
ForGroupMultiple=1,group
ForForceMultiple=1,force
TriggerSleepAction=0,real
ReturnAction=0,nothing
DisplayTextToForce=0,force,StringExt
CreateNUnitsAtLoc=0,integer,unitcode,player,location,degree
KillUnit=0,unit
RemoveUnit=0,unit
EnableTrigger=0,trigger
DisableTrigger=0,trigger
TriggerExecute=0,trigger
ConditionalTriggerExecute=0,trigger

[TriggerCalls]
GetTriggerUnit=0,1,unit
GetTriggerPlayer=0,1,player
GetEnteringUnit=0,1,unit
GetDyingUnit=0,1,unit
GetKillingUnitBJ=0,1,unit
GetLastCreatedUnit=0,0,unit
GetPlayersAll=0,0,force
ConvertedPlayer=0,0,player,integer
GetForLoopIndexA=0,0,integer
GetForLoopIndexB=0,0,integer
GetUnitLoc=0,0,location,unit
GetRectCenter=0,0,location,rect
GetPlayableMapRect=0,0,rect
GetPlayerName=0,0,string,player
OperatorInt=0,0,integer,integer,ArithmeticOperator,integer
OperatorReal=0,0,real,real,ArithmeticOperator,real
OperatorString=0,0,string,string,string
I2S=0,0,string,integer
GetBooleanAnd=0,0,boolean,boolean,boolean
GetBooleanOr=0,0,boolean,boolean,boolean
'''


def parse_trigger_data(content: str) -> dict[str, dict[str, list[str]]]:
    """Parse TriggerData.txt content into {section: {key: [fields]}}.

    Metadata keys (leading underscore), comments and blank lines are skipped.
    Later duplicates of a key replace earlier ones.
    """
    result: dict[str, dict[str, list[str]]] = {}
    current: dict[str, list[str]] | None = None

    section_pattern = re.compile(r'^\[([^\]]+)\]$')
    # Pattern for entries: Key=field,field,...
    kv_pattern = re.compile(r'^([^=\s]+)\s*=\s*(.*)$')

    for line in content.split('\n'):
        line = line.strip()
        if not line or line.startswith('//') or line.startswith(';'):
            continue

        section_match = section_pattern.match(line)
        if section_match:
            current = result.setdefault(section_match.group(1).strip(), {})
            continue

        kv_match = kv_pattern.match(line)
        if kv_match is None or current is None:
            continue

        key, value = kv_match.groups()
        if key.startswith('_'):
            continue
        current[key] = [part.strip() for part in value.split(',')]

    return result


@dataclass(frozen=True)
class FunctionSignature:
    """Parameter types (and return type for calls) of one GUI function."""

    name: str
    kind: FunctionKind
    argument_types: tuple[str, ...] = ()
    return_type: str | None = None

    @property
    def parameter_count(self) -> int:
        return len(self.argument_types)

    @classmethod
    def from_fields(cls, name: str, kind: FunctionKind, fields: list[str]) -> FunctionSignature:
        """Build a signature from the comma-separated fields of an entry."""
        return_type = None
        if kind == FunctionKind.CALL:
            # version, events-flag, return type, args...
            return_type = fields[2] if len(fields) > 2 else None
            arguments = fields[3:]
        else:
            arguments = fields[1:]
        arguments = [arg for arg in arguments if arg and arg != NO_ARGUMENTS]
        return cls(name=name, kind=kind, argument_types=tuple(arguments), return_type=return_type)


@dataclass
class TriggerData:
    """Signature lookup keyed by function kind and name."""

    signatures: dict[FunctionKind, dict[str, FunctionSignature]] = field(
        default_factory=lambda: {kind: {} for kind in FunctionKind}
    )

    @classmethod
    def from_text(cls, content: str) -> TriggerData:
        """Build a table from TriggerData.txt content."""
        table = cls()
        for section, entries in parse_trigger_data(content).items():
            kind = SECTION_KINDS.get(section)
            if kind is None:
                continue
            for name, fields in entries.items():
                table.add(FunctionSignature.from_fields(name, kind, fields))
        return table

    @classmethod
    def load(cls, path: Path) -> TriggerData:
        """Load a TriggerData.txt file from disk."""
        content = path.read_text(encoding='utf-8', errors='replace')
        table = cls.from_text(content)
        log.debug(f'Loaded {len(table)} function signatures from {path}')
        return table

    @classmethod
    def default(cls) -> TriggerData:
        """Return a fresh table built from the built-in signatures."""
        return cls.from_text(BUILTIN_TRIGGER_DATA)

    def add(self, signature: FunctionSignature) -> None:
        """Add or replace a signature."""
        self.signatures[signature.kind][signature.name] = signature

    def lookup(self, kind: FunctionKind, name: str) -> FunctionSignature | None:
        """Find the signature for a function.

        Calls that are not in TriggerCalls are looked up among the conditions,
        which the editor also uses as boolean calls.
        """
        signature = self.signatures[kind].get(name)
        if signature is None and kind == FunctionKind.CALL:
            signature = self.signatures[FunctionKind.CONDITION].get(name)
        return signature

    def merged(self, other: TriggerData) -> TriggerData:
        """Return a new table with `other`'s signatures laid over this one."""
        table = TriggerData()
        for source in (self, other):
            for entries in source.signatures.values():
                for signature in entries.values():
                    table.add(signature)
        return table

    def __len__(self) -> int:
        return sum(len(entries) for entries in self.signatures.values())
