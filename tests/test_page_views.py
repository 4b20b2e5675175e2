import pytest

from utils import page_views
from utils.errors import ValidationError


def test_count_is_zero_for_unseen_path(app):
    assert page_views.get_count('/never-seen') == 0


def test_increment_returns_running_count(app):
    assert page_views.increment('/blog/first-post') == 1
    assert page_views.increment('/blog/first-post') == 2
    assert page_views.increment('/blog/other') == 1
    assert page_views.get_count('/blog/first-post') == 2


def test_paths_are_normalized(app):
    page_views.increment('/Blog/Post')
    page_views.increment('  /blog/post ')
    assert page_views.get_count('/BLOG/POST') == 2


@pytest.mark.parametrize('path', [None, '', '   '])
def test_path_is_required(app, path):
    with pytest.raises(ValidationError):
        page_views.increment(path)
    with pytest.raises(ValidationError):
        page_views.get_count(path)
