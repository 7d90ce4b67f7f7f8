import pytest

from domain.article.entity import Article, ArticleStatus
from domain.common.exceptions import (
    DomainValidationException,
    InvalidStatusTransitionException,
    PermissionDeniedException,
)


def make_article(status=ArticleStatus.PUBLISHED) -> Article:
    return Article(id=1, title="Hello", content="body", author_id=7, status=status)


@pytest.mark.parametrize("status", [ArticleStatus.PUBLISHED, ArticleStatus.REJECTED])
def test_author_edit_sends_reviewed_article_back_to_pending(status):
    article = make_article(status)
    article.edit(by_admin=False, title="Hello again")
    assert article.status == ArticleStatus.PENDING
    assert article.title == "Hello again"


def test_admin_edit_keeps_status():
    article = make_article()
    article.edit(by_admin=True, content="new body")
    assert article.status == ArticleStatus.PUBLISHED


def test_empty_image_url_clears_cover():
    article = make_article()
    article.image_url = "/uploads/covers/a.png"
    article.edit(by_admin=True, image_url="")
    assert article.image_url is None


def test_author_cannot_publish():
    article = make_article(ArticleStatus.DRAFT)
    with pytest.raises(PermissionDeniedException):
        article.change_status(ArticleStatus.PUBLISHED, by_admin=False)
    article.change_status(ArticleStatus.PENDING, by_admin=False)
    assert article.status == ArticleStatus.PENDING


def test_review_rules():
    article = make_article(ArticleStatus.PENDING)
    with pytest.raises(InvalidStatusTransitionException):
        article.review(ArticleStatus.DRAFT)
    with pytest.raises(DomainValidationException):
        article.review(ArticleStatus.REJECTED, reason="  ")

    article.review(ArticleStatus.REJECTED, reason=" off topic ")
    assert article.status == ArticleStatus.REJECTED
    assert article.review_reason == "off topic"
    assert article.reviewed_at is not None


@pytest.mark.parametrize("title", ["", "   ", "x" * 201])
def test_title_validation(title):
    with pytest.raises(DomainValidationException):
        Article(id=None, title=title, content="body", author_id=1)
