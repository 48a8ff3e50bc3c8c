"""Game timing and balance constants.

All times are in seconds of the audio clock.

- `STEPS_PER_BEAT = 4` - Euclidean steps per quarter-note beat
- `LOOKAHEAD_SECONDS = 0.1` - a new cycle starts this far after the tick that rolls it over
- `HIT_TOLERANCE_FRACTION = 0.2` - a tap is a hit within ±20% of one subdivision
- `MISS_DEBOUNCE_SECONDS = 0.2` - misses closer together than this count once
- `HIT_FLASH_SECONDS = 0.2` - how long a hit step stays marked
- `BPM_RAMP_EVERY_CYCLES = 4`, `BPM_RAMP_INCREMENT = 2`, `MAX_BPM = 200` - elimination tempo ramp

The ramp values are game balance, kept exactly as the original game plays.
"""

STEPS_PER_BEAT = 4

LOOKAHEAD_SECONDS = 0.1

HIT_TOLERANCE_FRACTION = 0.2
MISS_DEBOUNCE_SECONDS = 0.2
HIT_FLASH_SECONDS = 0.2

BPM_RAMP_EVERY_CYCLES = 4
BPM_RAMP_INCREMENT = 2
MAX_BPM = 200
DEFAULT_BPM = 80

# Click sounds for player taps and previews.
CLICK_DURATION = 0.05
CLICK_GAIN = 0.6
CLICK_DELAY = 0.01
LEFT_CLICK_NOTE = "C5"
RIGHT_CLICK_NOTE = "G5"
LEFT_PAN = -0.8
RIGHT_PAN = 0.8

# Previews play up to this many cycles, aiming for roughly this many beats.
PREVIEW_MAX_CYCLES = 4
PREVIEW_TARGET_BEATS = 8
PREVIEW_TAIL_SECONDS = 0.1

MIDI_PAN_CC = 10
