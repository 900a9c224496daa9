from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import (
    User, League, LeagueMember, Race, RaceResult, FreePickRace,
    DriverPick, PlayerRaceScore, SeasonStanding,
    ChaseRound, ChaseElimination, RaceScoringStatus,
)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Custom User admin"""
    pass


class LeagueMemberInline(admin.TabularInline):
    model = LeagueMember
    extra = 0
    fields = ['user', 'payment_status', 'joined_at']
    readonly_fields = ['joined_at']


@admin.register(League)
class LeagueAdmin(admin.ModelAdmin):
    list_display = ['name', 'series', 'season', 'commissioner', 'payment_deadline', 'member_count']
    list_filter = ['series', 'season']
    search_fields = ['name', 'commissioner__username']
    inlines = [LeagueMemberInline]
    readonly_fields = ['created_at', 'prize_pool_display']

    fieldsets = (
        ('Basic Info', {
            'fields': ('name', 'series', 'season', 'commissioner')
        }),
        ('Payments', {
            'fields': ('payment_deadline',)
        }),
        ('Payouts', {
            'fields': ('payout_first', 'payout_second', 'payout_third', 'payout_fourth', 'prize_pool_display')
        }),
        ('Metadata', {
            'fields': ('created_at',),
            'classes': ('collapse',)
        }),
    )

    def member_count(self, obj):
        return obj.members.count()
    member_count.short_description = 'Members'

    def prize_pool_display(self, obj):
        from .processing.payouts import total_prize_pool
        return f"${total_prize_pool(obj)}"
    prize_pool_display.short_description = 'Prize Pool'


@admin.register(LeagueMember)
class LeagueMemberAdmin(admin.ModelAdmin):
    list_display = ['user', 'league', 'payment_status', 'joined_at']
    list_filter = ['league', 'payment_status']
    search_fields = ['user__username', 'league__name']


class RaceResultInline(admin.TabularInline):
    model = RaceResult
    extra = 0
    fields = ['finishing_position', 'driver_id', 'driver_name', 'car_number', 'stage_wins']
    ordering = ['finishing_position']


@admin.register(Race)
class RaceAdmin(admin.ModelAdmin):
    list_display = [
        'race_number', 'name', 'series', 'season', 'track_name',
        'scheduled_at', 'is_exhibition', 'external_id'
    ]
    list_filter = ['series', 'season', 'is_exhibition']
    search_fields = ['name', 'track_name']
    ordering = ['series', 'season', 'race_number']
    inlines = [RaceResultInline]


@admin.register(FreePickRace)
class FreePickRaceAdmin(admin.ModelAdmin):
    list_display = ['league', 'race', 'created_at']
    list_filter = ['league']


@admin.register(DriverPick)
class DriverPickAdmin(admin.ModelAdmin):
    list_display = ['user', 'league', 'race', 'driver_name', 'driver_id', 'is_free_pick', 'updated_at']
    list_filter = ['league', 'race__season', 'is_free_pick']
    search_fields = ['user__username', 'driver_name']
    raw_id_fields = ['race']


@admin.register(PlayerRaceScore)
class PlayerRaceScoreAdmin(admin.ModelAdmin):
    list_display = [
        'user', 'league', 'race', 'driver_name', 'finishing_position',
        'points_earned', 'playoff_points_earned', 'outcome'
    ]
    list_filter = ['league', 'outcome', 'is_free_pick', 'is_race_win']
    search_fields = ['user__username', 'driver_name']
    readonly_fields = ['created_at']


@admin.register(SeasonStanding)
class SeasonStandingAdmin(admin.ModelAdmin):
    list_display = [
        'user', 'league', 'season', 'regular_season_points', 'playoff_points',
        'race_wins', 'top_5s', 'top_10s', 'is_eliminated', 'elimination_round', 'is_wild_card'
    ]
    list_filter = ['league', 'season', 'is_eliminated', 'is_wild_card', 'is_regular_season_winner']
    search_fields = ['user__username']
    ordering = ['league', 'season', '-regular_season_points']
    readonly_fields = ['created_at', 'updated_at']

    fieldsets = (
        ('Player', {
            'fields': ('league', 'user', 'season')
        }),
        ('Totals', {
            'fields': (
                'regular_season_points', 'playoff_points', 'race_wins', 'stage_wins',
                'top_5s', 'top_10s', 'top_15s', 'top_20s'
            )
        }),
        ('Chase', {
            'fields': (
                'is_eliminated', 'elimination_round', 'is_wild_card', 'is_regular_season_winner',
                'playoff_points_carried', 'playoff_window_start'
            )
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(ChaseRound)
class ChaseRoundAdmin(admin.ModelAdmin):
    list_display = [
        'league', 'season', 'round_number', 'players_remaining',
        'start_race_number', 'is_active', 'started_at', 'completed_at'
    ]
    list_filter = ['league', 'season', 'is_active']


@admin.register(ChaseElimination)
class ChaseEliminationAdmin(admin.ModelAdmin):
    list_display = [
        'user', 'league', 'season', 'eliminated_round',
        'final_position', 'playoff_points_at_elimination', 'eliminated_at'
    ]
    list_filter = ['league', 'season', 'eliminated_round']
    ordering = ['league', 'season', 'final_position']


@admin.register(RaceScoringStatus)
class RaceScoringStatusAdmin(admin.ModelAdmin):
    list_display = ['league', 'race', 'is_scoring', 'last_scored_at', 'times_scored', 'has_error']
    list_filter = ['league', 'is_scoring']
    readonly_fields = ['created_at', 'updated_at', 'flow_metadata']

    def has_error(self, obj):
        return bool(obj.last_error)
    has_error.boolean = True
    has_error.short_description = 'Error'
