# utils/midi_info.py
from dataclasses import dataclass

from mido import MidiFile

DRUM_CHANNELS = (9, 10)


@dataclass
class MidiSummary:
    path: str
    type: int
    tracks: int
    ticks_per_beat: int
    end_tick: int
    length: float
    notes: int
    drum_notes: int


def is_note_on(msg) -> bool:
    return msg.type == 'note_on' and getattr(msg, 'velocity', 0) > 0


def end_tick(mid: MidiFile) -> int:
    """Tick de fin réelle (max de toutes les pistes)."""
    m = 0
    for tr in mid.tracks:
        t = 0
        for msg in tr:
            t += msg.time
        if t > m:
            m = t
    return m


def describe_midi(path, drum_channels=DRUM_CHANNELS) -> MidiSummary:
    mid = MidiFile(str(path))
    notes = drums = 0
    for tr in mid.tracks:
        for msg in tr:
            if is_note_on(msg):
                notes += 1
                if msg.channel in drum_channels:
                    drums += 1
    # length n'a pas de sens pour un type 2 (pistes asynchrones)
    length = round(mid.length, 3) if mid.type != 2 else 0.0
    return MidiSummary(
        path=str(path),
        type=mid.type,
        tracks=len(mid.tracks),
        ticks_per_beat=mid.ticks_per_beat,
        end_tick=end_tick(mid),
        length=length,
        notes=notes,
        drum_notes=drums,
    )


def format_summary(s: MidiSummary) -> str:
    return (f"{s.path} : type {s.type}, {s.tracks} piste(s), {s.ticks_per_beat} ticks/noire, "
            f"{s.length}s, {s.notes} note(s) dont {s.drum_notes} percussion(s)")
