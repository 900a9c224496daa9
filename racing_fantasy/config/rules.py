CUP_FANTASY_RULES = {
    "picks": {
        "max_driver_uses": 2,  # per season, free-pick races don't count
        # Exhibition races are detected by name when not explicitly designated
        "free_pick_name_patterns": ["clash", "all-star", "all star"],
    },
    "scoring": {
        "finish_points": {
            1: 40, 2: 35, 3: 34, 4: 33, 5: 32,
            6: 31, 7: 30, 8: 29, 9: 28, 10: 27,
            11: 26, 12: 25, 13: 24, 14: 23, 15: 22,
            16: 21, 17: 20, 18: 19, 19: 18, 20: 17,
            21: 16, 22: 15, 23: 14, 24: 13, 25: 12,
            26: 11, 27: 10, 28: 9, 29: 8, 30: 7,
            31: 6, 32: 5, 33: 4, 34: 3, 35: 2,
        },
        "beyond_table_points": 1,  # 36th and worse
        "free_pick_win_points": 10,
        "free_pick_miss_points": 0,
        "finish_buckets": [5, 10, 15, 20],
    },
    "playoff_points": {
        "race_win": 5,
        "free_pick_win": 1,
        "stage_win": 1,
        "regular_season_winner": 15,
    },
    "chase": {
        "automatic_qualifiers": 20,  # by regular season points
        "wild_cards": 3,  # race winners outside the top 20
        "field_size": 23,
        "players_remaining": {
            1: 16,  # Round of 16
            2: 10,  # Round of 10
            3: 4,   # Final Four qualifier
            4: 4,   # Championship
        },
        "minimum_remaining": 4,
        "at_risk_margin": 2,  # positions above the line shown as at-risk
        "round_names": {
            0: "Regular Season",
            1: "Round of 16",
            2: "Round of 10",
            3: "Final Four Qualifier",
            4: "Championship",
        },
    },
    "payouts": {
        "places": 4,
    },
}
