"""Shared fixtures: small tasks/topics/quiz feeds and a fresh completion store."""

import pytest

from coursegate.classroom import (
    CompletionStore,
    MemoryStore,
    organize_quiz,
    organize_tasks,
    organize_topics,
    parse_quiz_rows,
    parse_task_rows,
    parse_topic_rows,
)
from coursegate.utils import parse_csv


TASKS_CSV = (
    "courseId,courseName,chapterId,chapterName,lessonId,lessonName,taskId,taskTitle,"
    "scenario,pdfUrls,tallyUrls,answerKeyUrl,xp,instructions\r\n"
    'c1,Zane Omega,ch1,Foundations,les_1_1,Welcome,t1,Set up,"Scenario, with comma",'
    "https://a.pdf;https://b.pdf,https://tally.so/x,https://key,10,Step one\\nStep two\r\n"
    "c1,Zane Omega,ch1,Foundations,les_1_1,Welcome,t2,Second,,,,,20xp,\r\n"
    "c1,Zane Omega,ch1,Foundations,les_1_2,Practice,t3,Third,,,,,abc,\r\n"
    "c1,Renamed,ch2,Advanced,les_2_1,Deep dive,t4,Fourth,,https://c.pdf,,,5,\r\n"
)

TOPICS_CSV = (
    "courseId,chapterId,lessonId,topicId,topicTitle,videoUrl,description,order\n"
    "c1,ch1,les_1_1,top2,Second,https://youtu.be/abcdefghijk,,2\n"
    "c1,ch1,les_1_1,top1,First,https://www.youtube.com/watch?v=XYZ12345678&t=1,Intro,1\n"
    ",,,,,,,\n"
    "c1,ch2,les_2_1,top3,Other,https://youtube.com/embed/embedid0001,, 1\n"
)

QUIZ_CSV = (
    "courseId,chapterId,lessonId,topicId,questionId,question,optionA,optionB,optionC,optionD,options,correctOption\n"
    'c1,ch1,les_1_1,top1,q1,"What is 2+2?",3,4,5,6,,B\n'
    'c1,ch1,les_1_1,top1,q2,Pick a colour,,,,,"A) red | B) green | C) blue",c\n'
    "c1,ch1,les_1_1,top2,q3,Third,yes,no,,,,Z\n"
)


@pytest.fixture
def task_rows():
    return parse_task_rows(parse_csv(TASKS_CSV))


@pytest.fixture
def courses(task_rows):
    return organize_tasks(task_rows)


@pytest.fixture
def course(courses):
    return courses[0]


@pytest.fixture
def topics():
    return organize_topics(parse_topic_rows(parse_csv(TOPICS_CSV)))


@pytest.fixture
def quiz_rows():
    return parse_quiz_rows(parse_csv(QUIZ_CSV))


@pytest.fixture
def quiz(quiz_rows):
    return organize_quiz(quiz_rows)


@pytest.fixture
def store():
    return CompletionStore(MemoryStore(), MemoryStore())
