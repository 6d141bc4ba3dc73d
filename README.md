# botplugins

Building blocks for a group chat bot. Each module holds the logic of one
plugin. None of them talks to a chat server, so you can wire them into any
bot framework.

## What is inside

| Module | Purpose |
| --- | --- |
| `botplugins.timer` | `Timer` reminders whose month, day, week, hour and minute are packed into one integer (`-1` means "every"). `get_filled_timer` builds one from the groups of a Chinese date phrase. `chinese_num_to_int` and `chinese_char_to_int` read Chinese numerals. `Timer.info`, `Timer.timer_id` and `Timer.message_segments` are also here. |
| `botplugins.wake` | `next_wake_time(timer, now)` works out when a date-based reminder next wakes. `should_fire(timer, now)` says whether it is due. `first_weekday` is a helper. |
| `botplugins.clock` | `Clock(db_path, sender)` keeps reminders in SQLite and runs each one on a background thread, calling `sender(timer)` when it fires. `CronSchedule` parses five-field cron expressions and the `@daily`-style shortcuts. |
| `botplugins.manager_admin` | Group administration helpers: `ban_seconds`, `unescape_forward`, `check_card`, `check_title`, `parse_cron_command` and `pick_lucky_member`. They raise `CommandError`. |
| `botplugins.manager_greeting` | Welcome and farewell templates (`GreetingStore`, `render_greeting`) and feature flags (`toggle_flag`). Also the join quiz (`verification_question`, `check_verification_answer`) and gist-based join approval (`parse_gist_answer`, `GistVerifier`). |
| `botplugins.moyu` | The daily "slacker" reminder. `Holiday`, `parse_holiday`, `format_holiday`, `weekend_message` and `build_reminder`. |
| `botplugins.midi` | Turns melody text such as `CCGGAAGR` into a MIDI file (`compose`, `write_midi`) and reads a MIDI track back into text (`midi_to_text`). Also `render_wav` and the ear-training helpers (`parse_note`, `random_question`). |
| `botplugins.nihongo` | `GrammarStore` draws a random `Grammar` entry by tag from SQLite. |
| `botplugins.hyaku` | `load_poems` reads the Hyakunin Isshu CSV into `Poem` records. `poem_image_urls` gives a poem's image links and `download_csv` fetches the table. |
| `botplugins.lookup` | Abbreviation guesses (`guess_abbreviation`), slang definitions (`search_definition`, `format_definition`) and the juejuezi generator (`juejuezi`). |
| `botplugins.imagefinder` | Keyword illustration search (`search`) and formatting helpers (`format_tags`, `clean_description`). Failures raise `SearchError`. |
| `botplugins.nativesetu` | `SetuStore` indexes local picture folders by difference hash, with one SQLite table per folder. |
| `botplugins.nativewife` | `WifeGallery` keeps a picture folder for each group and gives each member the same pick all day. |
| `botplugins.moegoe` | `match_command` recognises "让X说…" commands and `speech_url` builds the text-to-speech URL for them. |

## Examples

Build a reminder from the regex groups of a command. The groups are: the
whole match, month, day or week, hour, minute, an optional "用<url>" part,
and the alert text. An invalid date gives a disabled timer whose `alert`
says what is wrong.

```python
from botplugins.timer import chinese_num_to_int, get_filled_timer

timer = get_filled_timer(["", "12", "-1", "12", "0", "", "test"], 0, 0, False)
print(timer.info(), timer.timer_id(), timer.en)

print(chinese_num_to_int("十五"))  # 15
```

Find out when it wakes next, or run it with a clock:

```python
from datetime import datetime

from botplugins.clock import Clock
from botplugins.wake import next_wake_time

print(next_wake_time(timer, datetime.now()))

with Clock("timers.db", sender=lambda t: print(t.message_segments())) as clock:
    clock.register_timer(timer, save=True)
    print(clock.list_timers(0))
```

Write a melody to a MIDI file. Letters `A` to `G` are notes, and `b` and `#`
make them flat or sharp. Digits choose the octave (default 5). `R` is a rest,
and `<n` sets the length to 2**n quarter notes.

```python
from botplugins.midi import midi_to_text, parse_note, write_midi

path = write_midi("twinkle.mid", "CCGGAAGR FFEEDDCR", 40)
print(midi_to_text(path.read_bytes(), 0))
print(parse_note("C#6"))  # 73
```

`botplugins.midi.render_wav` runs the external `timidity` program, so that
program must be installed to produce WAV audio.

## What this package does not do

- It does not connect to any chat platform. It does not receive messages,
  match commands to handlers or send replies. `Clock` only calls the
  `sender` you give it.
- It holds no interactive game loops. The ear-training and join-quiz
  helpers produce questions and judge answers, but timing a round is left
  to the caller.
- `botplugins.moyu` does not fetch holiday dates. You pass in `Holiday`
  objects, or records parsed with `parse_holiday`.
- The lookup, search and download functions call public web services, so
  they need network access.

## Tests

The test suite uses pytest. Install the `test` extra and run `pytest`.