from database.crud.crud_event import build_event_with_slots
from roster.rendering import (
    EMBED_COLOR,
    JOIN_BUTTON_PREFIX,
    format_roster_embed,
    format_slot,
    roster_components,
)
from roster.templates import split_into_parties

from helpers import EVENT_DATE, EVENT_START, EVENT_TIME


def make_event(lock_offset_minutes=None):
    event = build_event_with_slots(
        event_id=42, guild_id=1, owner_id=1, title="Castle siege", comp_name="ZvZ",
        date=EVENT_DATE, time=EVENT_TIME, lock_offset_minutes=lock_offset_minutes,
        roles=split_into_parties(";".join(f"Role {i}" for i in range(1, 23))),
    )
    event.slots[2].signed_up_user_id = 123
    return event


class TestFormatSlot:
    def test_available(self):
        assert format_slot(3, "Healer", None) == "`🟩` 3. Healer"

    def test_claimed(self):
        assert format_slot(3, "Healer", 123) == "`✔️` 3. Healer - <@123>"


class TestRosterEmbed:
    def test_layout(self):
        embed = format_roster_embed(make_event())

        assert embed.title == "Castle siege"
        assert embed.description == "Date: **01.01.2030**\nTime (UTC): **20:00**"
        assert embed.color.value == EMBED_COLOR
        assert embed.footer.text == "Event ID: 42"
        assert [f.name for f in embed.fields] == ["⚔️ Party 1", "⚔️ Party 2"]
        assert all(f.inline for f in embed.fields)

    def test_slots_in_role_order(self):
        party_1 = format_roster_embed(make_event()).fields[0].value.split("\n")

        assert len(party_1) == 20
        assert party_1[0] == "`🟩` 1. Role 1"
        assert party_1[2] == "`✔️` 3. Role 3 - <@123>"

    def test_lock_field(self):
        embed = format_roster_embed(make_event(lock_offset_minutes=30))
        timestamp = int(EVENT_START.timestamp()) - 30 * 60

        lock_field = embed.fields[-1]
        assert lock_field.name == "🔒 Sign-ups lock"
        assert lock_field.value == f"<t:{timestamp}:F> (<t:{timestamp}:R>)"
        assert not lock_field.inline

    def test_deterministic(self):
        event = make_event(lock_offset_minutes=30)
        assert format_roster_embed(event).to_dict() == format_roster_embed(event).to_dict()

    def test_full_roster_fits_embed_limits(self):
        event = build_event_with_slots(
            event_id=555000111222333444, guild_id=1, owner_id=1, title="x" * 255, comp_name="ZvZ",
            date=EVENT_DATE, time=EVENT_TIME, lock_offset_minutes=30,
            roles=split_into_parties(";".join(f"{i:02d}" + "x" * 22 for i in range(1, 81))),
        )
        for slot in event.slots:
            slot.signed_up_user_id = 999999999999999999

        embed = format_roster_embed(event)

        assert all(len(f.value) <= 1024 for f in embed.fields)
        assert len(embed.fields) <= 25
        assert len(embed) <= 6000
        assert embed.fields[1].name == "⚔️ Party 1 (cont.)"
        lines = [line for f in embed.fields[:-1] for line in f.value.split("\n")]
        assert len(lines) == 80


class TestComponents:
    def test_buttons_carry_event_id(self):
        buttons = roster_components(42)

        assert [b.label for b in buttons] == ["Join", "Leave", "Ping"]
        assert buttons[0].custom_id == f"{JOIN_BUTTON_PREFIX}|42"
        assert all(b.custom_id.endswith("|42") for b in buttons)
