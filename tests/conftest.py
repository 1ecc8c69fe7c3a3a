from __future__ import annotations

from typing import Any

import pytest

from world_engine.state.models import WorldState


def _world_document() -> dict[str, Any]:
    return {
        "world": {
            "world_id": "rome_70bce",
            "time": {"year_bce": 70, "season": "spring", "day": 3},
            "locations": [
                {"id": "loc_forum", "name": "Forum Romanum"},
                {"id": "loc_docks", "name": "Ostia Docks"},
            ],
            "global": {"unrest": 35, "scandal_temperature": 20},
        },
        "characters": {
            "characters": [
                {
                    "id": "char_varo",
                    "name": "Gaius Varo",
                    "faction_id": "fac_optimates",
                    "stats": {"wealth": 80, "auctoritas": 65, "dignitas": 40},
                    "status": {"alive": True, "location_id": "loc_forum"},
                    "bdi": {
                        "beliefs": [
                            {"id": "b1", "text": "The grain fleet is late", "confidence": 0.9},
                            {"id": "b2", "text": "Quintus is loyal", "confidence": 0.4},
                            {"id": "b3", "text": "The tribune can be bought", "confidence": 0.7},
                            {"id": "b4", "text": "Rain is coming", "confidence": 0.1},
                        ],
                        "desires": [{"id": "d1", "text": "Win the consulship", "priority": 0.9}],
                    },
                    "emotional_state": {"mood": "anxious"},
                    "voice": {"tags": ["clipped"]},
                },
                {
                    "id": "char_quintus",
                    "name": "Quintus",
                    "faction_id": "fac_optimates",
                    "stats": {"wealth": 20, "influence": 30},
                    "status": {"alive": True, "location_id": "loc_docks"},
                    "bdi": {"beliefs": [{"id": "b5", "text": "Varo pays late", "confidence": 0.8}]},
                },
                {
                    "id": "char_livia",
                    "name": "Livia",
                    "archetype": "schemer",
                    "faction_id": "fac_populares",
                    "stats": {"influence": 40},
                    "status": {"alive": True, "location_id": "loc_forum"},
                },
                {
                    "id": "char_marcus",
                    "name": "Marcus",
                    "stats": {"influence": 70},
                    "status": {"alive": False},
                },
            ]
        },
        "relationships": {
            "edges": [
                {
                    "id": "rel_varo_quintus",
                    "from": "char_varo",
                    "to": "char_quintus",
                    "type": "patron",
                    "weights": {"loyalty": 45, "fear": 60},
                    "flags": {"transactional": True},
                },
                {
                    "id": "rel_quintus_varo",
                    "from": "char_quintus",
                    "to": "char_varo",
                    "type": "client",
                    "weights": {"loyalty": 80},
                },
                {
                    "id": "rel_quintus_livia",
                    "from": "char_quintus",
                    "to": "char_livia",
                    "type": "rival",
                    "weights": {"resentment": 65},
                    "flags": {"public_feud": True},
                },
                {
                    "id": "rel_livia_marcus",
                    "from": "char_livia",
                    "to": "char_marcus",
                    "type": "ally",
                    "weights": {"respect": 75},
                },
            ]
        },
        "secrets": {
            "secrets": [
                {
                    "id": "sec_grain",
                    "subject_ids": ["char_varo"],
                    "holders": ["char_quintus"],
                    "description": "Varo skimmed the grain dole",
                    "status": "active",
                    "stats": {"legal_value": 60, "public_damage": 40, "credibility": 0.8},
                },
                {
                    "id": "sec_debt",
                    "subject_ids": ["char_quintus"],
                    "holders": ["char_varo"],
                    "description": "Quintus owes the collegium",
                    "status": "active",
                    "stats": {"legal_value": 10, "public_damage": 20, "credibility": 0.9},
                },
                {
                    "id": "sec_old",
                    "subject_ids": ["char_varo"],
                    "holders": ["char_livia"],
                    "description": "An old bribe",
                    "status": "revealed",
                    "stats": {"legal_value": 90, "public_damage": 90, "credibility": 1.0},
                },
            ]
        },
        "assets": {
            "assets": {
                "cash_ledger": [
                    {"holder": "char_varo", "denarii": 5000},
                    {"holder": "char_quintus", "denarii": 200},
                ],
                "networks": [
                    {"id": "net_dockhands", "name": "Dockhands", "owner": "char_quintus", "type": "labor"},
                ],
                "offices": [
                    {
                        "id": "off_aedile",
                        "name": "Aedileship",
                        "owner": "char_varo",
                        "type": "magistracy",
                        "powers": ["grain_distribution", "games"],
                    },
                ],
                "contracts": [
                    {
                        "id": "con_ships",
                        "type": "shipping",
                        "status": "active",
                        "stakeholders": ["char_varo", "char_livia"],
                    },
                ],
                "grain": {"inventory_units": 1200, "controlled_by": ["char_varo"]},
            }
        },
        "threads": {
            "threads": [
                {
                    "id": "thr_grain",
                    "priority": 0.9,
                    "question": "Will the grain scandal break?",
                    "status": "open",
                    "advance_cadence": {"max_episodes_without_progress": 2},
                    "episodes_since_progress": 3,
                    "related_state_paths": [
                        "characters.char_varo.stats.wealth",
                        "characters.char_quintus.status",
                        "characters.char_varo.bdi",
                        "world.global.unrest",
                    ],
                    "related_secrets": ["sec_grain"],
                },
                {
                    "id": "thr_election",
                    "priority": 0.5,
                    "status": "open",
                    "episodes_since_progress": 1,
                },
                {
                    "id": "thr_closed",
                    "status": "resolved",
                    "episodes_since_progress": 9,
                },
            ]
        },
        "factions": {
            "factions": [
                {"id": "fac_optimates", "name": "Optimates", "resources": 500},
                {"id": "fac_populares", "name": "Populares"},
            ]
        },
        "constraints": {
            "hard_constraints": [{"id": "hc1", "rule": "No resurrection"}],
        },
    }


@pytest.fixture
def world_document() -> dict[str, Any]:
    return _world_document()


@pytest.fixture
def world_state() -> WorldState:
    return WorldState.model_validate(_world_document())
