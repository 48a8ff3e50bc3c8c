"""
Beatdrill - rhythm and ear-training drills for Python.

Beatdrill is the game logic behind a set of music-education exercises:
tap along to polyrhythms and Euclidean rhythms, name chords, and rebuild
synth envelopes by ear.  It produces no audio of its own.  Clicks and
previews go out as MIDI (via ``mido``) to whatever synth you point them at.

What's inside:

- **Euclidean rhythms.** ``generate_euclidean_pattern(3, 8)`` gives the
  tresillo via Bjorklund's algorithm, always rotated to start on a hit.
- **Cycle timing and tap judging.** ``Polyrhythm(3, 4)`` and
  ``EuclideanRhythm(5, 8)`` map tempo onto repeating cycles; taps are
  judged against the nearest sounding step within ±20% of a step.
- **Rhythm game sessions.** ``RhythmGame`` runs practice and elimination
  rounds with streaks, miss debouncing and an elimination tempo ramp
  (+2 BPM every four cycles, up to 200), driven by a self-adjusting
  asyncio timer.
- **Chord detection.** ``detect_chord(["C4", "E4", "G4"])`` returns ``"C"``.
- **Envelope scoring.** ``score_envelope()`` rates a player's ADSR against a
  target from 0 to 100; ``WaveformQuiz`` builds levels on top of it.

Minimal example:

    ```python
    import asyncio
    import beatdrill

    async def main ():
        game = beatdrill.RhythmGame(beatdrill.Polyrhythm(3, 4), bpm=80, difficulty="elimination")
        game.events.on("hit", lambda voice, index, streak: print(voice, index, streak))
        game.start()
        await asyncio.sleep(10)
        game.exit_to_menu()

    asyncio.run(main())
    ```

Or play in a terminal with ``python -m beatdrill --config beatdrill.yaml``.

Package-level exports: ``RhythmGame``, ``Polyrhythm``, ``EuclideanRhythm``,
``generate_euclidean_pattern``, ``detect_chord``, ``Envelope``,
``score_envelope``, ``WaveformQuiz``.
"""

import beatdrill.chords
import beatdrill.envelope
import beatdrill.game
import beatdrill.quiz
import beatdrill.rhythm
import beatdrill.sequence_utils


RhythmGame = beatdrill.game.RhythmGame
Polyrhythm = beatdrill.rhythm.Polyrhythm
EuclideanRhythm = beatdrill.rhythm.EuclideanRhythm
generate_euclidean_pattern = beatdrill.sequence_utils.generate_euclidean_pattern
detect_chord = beatdrill.chords.detect_chord
Envelope = beatdrill.envelope.Envelope
score_envelope = beatdrill.envelope.score_envelope
WaveformQuiz = beatdrill.quiz.WaveformQuiz
