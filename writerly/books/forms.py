from flask_wtf import FlaskForm
from wtforms import SelectField, StringField, SubmitField, TextAreaField
from wtforms.validators import InputRequired, Length, Optional

from ..models import BOOK_STATUSES, CHAPTER_STATUSES


def _choices(values):
    return [(value, value.replace("_", " ").title()) for value in values]


class BookForm(FlaskForm):
    title = StringField("Book title", validators=[InputRequired(), Length(max=150)])
    description = TextAreaField("Short description", validators=[Length(max=500)])
    submit = SubmitField("Create book")


class BookStatusForm(FlaskForm):
    status = SelectField("Status", choices=_choices(BOOK_STATUSES), validators=[InputRequired()])
    submit = SubmitField("Update status")


class ChapterForm(FlaskForm):
    title = StringField("Chapter title", validators=[InputRequired(), Length(max=150)])
    submit = SubmitField("Add chapter")


class ChapterContentForm(FlaskForm):
    title = StringField("Chapter title", validators=[InputRequired(), Length(max=150)])
    status = SelectField("Status", choices=_choices(CHAPTER_STATUSES), validators=[InputRequired()])
    content = TextAreaField("Chapter text", validators=[Optional()])
    submit = SubmitField("Save chapter")
