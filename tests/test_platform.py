from revu.platform import Absence, CommentExistence, ExistingComment, check_comment_existence


class _Platform:
    def __init__(self, result=None, exc=None):
        self.result = result
        self.exc = exc

    def get_review_comment(self, comment_id):
        if self.exc is not None:
            raise self.exc
        return self.result


def test_existing_comment():
    platform = _Platform(result=ExistingComment(id=1, path="a.py", body="x"))
    assert check_comment_existence(platform, 1) == CommentExistence(exists=True)


def test_none_means_not_found():
    assert check_comment_existence(_Platform(), 1) == CommentExistence(exists=False, reason=Absence.NOT_FOUND)


def test_not_found_error(platform):
    existence = check_comment_existence(platform, 404)
    assert not existence.exists
    assert existence.reason is Absence.NOT_FOUND
    assert existence.cause is None


def test_other_errors_are_tagged_with_cause():
    boom = TimeoutError("socket timed out")
    existence = check_comment_existence(_Platform(exc=boom), 1)
    assert not existence.exists
    assert existence.reason is Absence.ERROR
    assert existence.cause is boom
