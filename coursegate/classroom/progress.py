"""
Progress calculator - Task/XP statistics derived from completion markers.

Stats for a task subset only count completions of tasks in that subset, so
a course-wide completed-id set never inflates lesson or chapter numbers.
"""

from typing import Callable, Iterable

from coursegate.schemas import Chapter, ChapterProgress, Lesson, ProgressStats, Task


def calculate_progress(tasks: Iterable[Task], completed_ids: Iterable[str]) -> ProgressStats:
    """
    Compute completion and XP statistics for a set of tasks.

    Args:
        tasks: Tasks to report on (a lesson, chapter or course)
        completed_ids: Completed task ids; ids outside `tasks` are ignored

    Returns:
        ProgressStats; percentages are 0 when there is nothing to complete
    """
    tasks = list(tasks)
    completed = set(completed_ids)

    total_tasks = len(tasks)
    total_xp = sum(task.xp for task in tasks)

    done = [task for task in tasks if task.id in completed]
    completed_tasks = len(done)
    earned_xp = sum(task.xp for task in done)

    return ProgressStats(
        total_tasks=total_tasks,
        completed_tasks=completed_tasks,
        completion_percentage=(completed_tasks / total_tasks) * 100 if total_tasks > 0 else 0,
        total_xp=total_xp,
        earned_xp=earned_xp,
        xp_percentage=(earned_xp / total_xp) * 100 if total_xp > 0 else 0,
    )


def chapter_progress(chapter: Chapter, is_complete: Callable[[Lesson], bool]) -> ChapterProgress:
    """
    Lesson-level statistics for a chapter.

    Args:
        chapter: Chapter to report on
        is_complete: Decides whether a lesson counts as complete

    Returns:
        ChapterProgress with rounded integer percentages; XP is earned only
        from fully complete lessons
    """
    total_lessons = len(chapter.lessons)
    complete = [lesson for lesson in chapter.lessons if is_complete(lesson)]

    total_xp = sum(lesson.total_xp for lesson in chapter.lessons)
    earned_xp = sum(lesson.total_xp for lesson in complete)

    return ChapterProgress(
        total_lessons=total_lessons,
        completed_lessons=len(complete),
        completion_percentage=round(len(complete) / total_lessons * 100) if total_lessons > 0 else 0,
        total_xp=total_xp,
        earned_xp=earned_xp,
        xp_percentage=round(earned_xp / total_xp * 100) if total_xp > 0 else 0,
    )
