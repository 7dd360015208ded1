"""
Dashboard aggregations and the team leaderboard
"""
from datetime import datetime, time

from django.contrib.auth import get_user_model
from django.db.models import Count, Q
from django.utils import timezone

from apps.common.roles import LEADERBOARD_ROLES, matches_role
from apps.common.uploads import absolute_file_url
from apps.common.utils import parse_date_value, round_half_up

from .models import Task, TaskPriority, TaskStatus
from .serializers import RecentTaskSerializer

RECENT_TASK_LIMIT = 10


def _day_bound(value, bound):
    day = parse_date_value(value) if value else None
    if day is None:
        return None
    return timezone.make_aware(datetime.combine(day, bound), timezone.get_current_timezone())


def created_range(start_date=None, end_date=None):
    """Start of ``start_date`` and end of ``end_date``; unparseable values are ignored."""
    return _day_bound(start_date, time.min), _day_bound(end_date, time.max)


def summarize(tasks, now=None):
    """Statistics and chart counts over a task queryset."""
    now = now or timezone.now()
    counts = tasks.aggregate(
        total=Count('id', distinct=True),
        pending=Count('id', filter=Q(status=TaskStatus.PENDING), distinct=True),
        in_progress=Count('id', filter=Q(status=TaskStatus.IN_PROGRESS), distinct=True),
        completed=Count('id', filter=Q(status=TaskStatus.COMPLETED), distinct=True),
        overdue=Count('id', filter=~Q(status=TaskStatus.COMPLETED) & Q(due_date__lt=now), distinct=True),
        low=Count('id', filter=Q(priority=TaskPriority.LOW), distinct=True),
        medium=Count('id', filter=Q(priority=TaskPriority.MEDIUM), distinct=True),
        high=Count('id', filter=Q(priority=TaskPriority.HIGH), distinct=True),
    )
    return {
        'statistics': {
            'total_tasks': counts['total'],
            'pending_tasks': counts['pending'],
            'completed_tasks': counts['completed'],
            'overdue_tasks': counts['overdue'],
        },
        'charts': {
            'task_distribution': {
                'Pending': counts['pending'],
                'InProgress': counts['in_progress'],
                'Completed': counts['completed'],
                'All': counts['total'],
            },
            'task_priority_levels': {
                'Low': counts['low'],
                'Medium': counts['medium'],
                'High': counts['high'],
            },
        },
    }


def leaderboard_score(stats):
    return (
        stats['completed_tasks'] * 10
        + stats['on_time_completions'] * 5
        + stats['in_progress_tasks'] * 2
        - stats['late_completions'] * 3
        - stats['overdue_tasks'] * 3
        - stats['pending_tasks']
    )


def _empty_stats():
    return {
        'total_assigned': 0,
        'completed_tasks': 0,
        'pending_tasks': 0,
        'in_progress_tasks': 0,
        'on_time_completions': 0,
        'late_completions': 0,
        'overdue_tasks': 0,
    }


def build_leaderboard(tasks, now=None, request=None):
    """
    Rank admins, members and clients by the tasks assigned to them.

    Super admins are not ranked. Ties fall back to on-time completions,
    then completions, then name.
    """
    now = now or timezone.now()
    users = [
        user for user in get_user_model().objects.all()
        if any(matches_role(user.role, role) for role in LEADERBOARD_ROLES)
    ]
    stats = {user.pk: _empty_stats() for user in users}

    assignments = Task.assigned_to.through.objects.filter(
        task__in=tasks,
        user_id__in=list(stats),
    ).values_list('user_id', 'task__status', 'task__due_date', 'task__completed_at')

    for user_id, status, due_date, completed_at in assignments:
        row = stats[user_id]
        row['total_assigned'] += 1
        if status == TaskStatus.COMPLETED:
            row['completed_tasks'] += 1
            if completed_at is not None:
                if completed_at <= due_date:
                    row['on_time_completions'] += 1
                else:
                    row['late_completions'] += 1
        else:
            if status == TaskStatus.PENDING:
                row['pending_tasks'] += 1
            elif status == TaskStatus.IN_PROGRESS:
                row['in_progress_tasks'] += 1
            if due_date < now:
                row['overdue_tasks'] += 1

    entries = []
    for user in users:
        row = stats[user.pk]
        total, completed = row['total_assigned'], row['completed_tasks']
        entries.append({
            'user_id': str(user.pk),
            'name': user.name,
            'role': user.role,
            'profile_image_url': absolute_file_url(request, user.profile_image) or None,
            'office_location': (user.office_location or '').strip(),
            **row,
            'completion_rate': round_half_up(completed / total * 100) if total else 0,
            'on_time_rate': round_half_up(row['on_time_completions'] / completed * 100) if completed else 0,
            'score': leaderboard_score(row),
        })

    entries.sort(key=lambda entry: (entry['name'] or '').lower())
    entries.sort(
        key=lambda entry: (entry['score'], entry['on_time_completions'], entry['completed_tasks']),
        reverse=True,
    )
    for rank, entry in enumerate(entries, start=1):
        entry['rank'] = rank
    return entries


def _recent(tasks, request):
    recent = tasks.prefetch_related('assigned_to').order_by('-created_at')[:RECENT_TASK_LIMIT]
    return RecentTaskSerializer(recent, many=True, context={'request': request}).data


def admin_dashboard(start_date=None, end_date=None, request=None, now=None):
    now = now or timezone.now()
    start, end = created_range(start_date, end_date)
    tasks = Task.objects.all()
    if start:
        tasks = tasks.filter(created_at__gte=start)
    if end:
        tasks = tasks.filter(created_at__lte=end)

    data = summarize(tasks, now)
    data['recent_tasks'] = _recent(Task.objects.all(), request)
    data['leaderboard'] = build_leaderboard(tasks, now, request)
    return data


def user_dashboard(user, request=None, now=None):
    tasks = Task.objects.filter(assigned_to=user)
    data = summarize(tasks, now)
    data['recent_tasks'] = _recent(tasks, request)
    return data
