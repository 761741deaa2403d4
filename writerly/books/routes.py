from __future__ import annotations

from flask import abort, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required

from ..extensions import db
from ..models import Book, Chapter
from ..services.progress import award_achievements_safely, save_chapter_content
from ..storage import WritingStorage
from . import bp
from .forms import BookStatusForm, ChapterContentForm, ChapterForm


def _get_owned_book(book_id: int) -> Book:
    book = db.get_or_404(Book, book_id)
    if book.owner_id != current_user.id:
        abort(403)
    return book


def _get_book_chapter(book: Book, chapter_id: int) -> Chapter:
    chapter = Chapter.query.filter_by(id=chapter_id, book_id=book.id).first()
    if chapter is None:
        abort(404)
    return chapter


@bp.route("/<int:book_id>", methods=["GET", "POST"])
@login_required
def detail(book_id: int):
    book = _get_owned_book(book_id)

    chapter_form = ChapterForm(prefix="chapter")
    status_form = BookStatusForm(prefix="status")

    if chapter_form.submit.data and chapter_form.validate_on_submit():
        next_index = max((chapter.order_index for chapter in book.chapters), default=0) + 1
        chapter = Chapter(
            book=book,
            title=chapter_form.title.data.strip(),
            order_index=next_index,
        )
        db.session.add(chapter)
        book.refresh_totals()
        db.session.commit()
        flash("Chapter added.", "success")
        _flash_awarded(award_achievements_safely(book.owner_id))
        return redirect(url_for("books.edit_chapter", book_id=book.id, chapter_id=chapter.id))

    if request.method == "GET":
        status_form.status.data = book.status

    return render_template(
        "books/book_detail.html",
        book=book,
        chapters=book.chapters,
        chapter_form=chapter_form,
        status_form=status_form,
    )


@bp.route("/<int:book_id>/status", methods=["POST"])
@login_required
def update_status(book_id: int):
    book = _get_owned_book(book_id)
    form = BookStatusForm(prefix="status")
    if form.validate_on_submit():
        book.status = form.status.data
        db.session.commit()
        flash("Book status updated.", "success")
        if book.status == "completed":
            _flash_awarded(award_achievements_safely(book.owner_id))
    else:
        for errors in form.errors.values():
            for error in errors:
                flash(error, "danger")
    return redirect(url_for("books.detail", book_id=book.id))


@bp.route("/<int:book_id>/delete", methods=["POST"])
@login_required
def delete(book_id: int):
    book = _get_owned_book(book_id)
    WritingStorage().detach_activities(book_id=book.id)
    db.session.delete(book)
    db.session.commit()
    flash("Book deleted. Your writing history was kept.", "info")
    return redirect(url_for("main.dashboard"))


@bp.route("/<int:book_id>/chapters/<int:chapter_id>", methods=["GET", "POST"])
@login_required
def edit_chapter(book_id: int, chapter_id: int):
    book = _get_owned_book(book_id)
    chapter = _get_book_chapter(book, chapter_id)

    form = ChapterContentForm()
    if form.validate_on_submit():
        chapter.title = form.title.data.strip()
        chapter.status = form.status.data
        result = save_chapter_content(chapter, form.content.data or "")
        if result.word_delta:
            flash(f"Chapter saved. {result.word_delta} new words today.", "success")
        else:
            flash("Chapter saved.", "success")
        _flash_awarded(result.awarded)
        return redirect(url_for("books.edit_chapter", book_id=book.id, chapter_id=chapter.id))

    if request.method == "GET":
        form.title.data = chapter.title
        form.status.data = chapter.status
        form.content.data = chapter.content or ""

    return render_template("books/chapter_edit.html", book=book, chapter=chapter, form=form)


@bp.route("/<int:book_id>/chapters/<int:chapter_id>/delete", methods=["POST"])
@login_required
def delete_chapter(book_id: int, chapter_id: int):
    book = _get_owned_book(book_id)
    chapter = _get_book_chapter(book, chapter_id)
    WritingStorage().detach_activities(chapter_id=chapter.id)
    book.chapters.remove(chapter)
    book.refresh_totals()
    db.session.commit()
    flash("Chapter deleted.", "info")
    return redirect(url_for("books.detail", book_id=book.id))


def _flash_awarded(awarded) -> None:
    for entry in awarded:
        flash(f'Achievement unlocked: "{entry.achievement.name}"', "success")
