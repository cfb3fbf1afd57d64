# apps/core/forms.py

from django import forms
from django.core.exceptions import ValidationError
from django.utils.dateparse import parse_date, parse_datetime

from . import exceptions
from .models import PRIORITY_CHOICES, ROLE_CHOICES
from .utils import sanitizar_texto

HEX_COLOR = r'^#[0-9a-fA-F]{6}$'


class JSONListField(forms.Field):
    """Campo que recebe uma lista JSON já decodificada"""

    def __init__(self, *, max_items=None, item_max_length=None, text_items=False, **kwargs):
        self.max_items = max_items
        self.item_max_length = item_max_length
        self.text_items = text_items or item_max_length is not None
        super().__init__(**kwargs)

    def to_python(self, value):
        if value in (None, ''):
            return []
        if not isinstance(value, list):
            raise ValidationError('Informe uma lista.', code='invalid')
        return value

    def validate(self, value):
        if self.required and not value:
            raise ValidationError(self.error_messages['required'], code='required')

        if self.max_items is not None and len(value) > self.max_items:
            raise ValidationError(f'Máximo de {self.max_items} itens.', code='max_items')

        if self.text_items:
            for item in value:
                if not isinstance(item, str) or not item.strip():
                    raise ValidationError('Itens devem ser textos não vazios.', code='invalid_item')
                if self.item_max_length is not None and len(item) > self.item_max_length:
                    raise ValidationError(
                        f'Cada item deve ter no máximo {self.item_max_length} caracteres.',
                        code='item_too_long',
                    )


class KanbanForm(forms.Form):
    """
    Formulário base para corpos JSON da API

    Com partial=True só os campos presentes no corpo são validados e
    devolvidos (PUT/PATCH com merge).
    """

    def __init__(self, data=None, *, partial=False, **kwargs):
        super().__init__(data=data or {}, **kwargs)
        self.partial = partial
        if partial:
            for name in list(self.fields):
                if name not in self.data:
                    del self.fields[name]

    def validated(self):
        """Dados limpos ou exceptions.ValidationError (400) com os erros por campo"""
        if not self.is_valid():
            erros = {
                campo: [e['message'] for e in lista]
                for campo, lista in self.errors.get_json_data().items()
            }
            primeiro_campo = next(iter(erros))
            raise exceptions.ValidationError(
                f'{primeiro_campo}: {erros[primeiro_campo][0]}',
                fields=erros,
            )
        return self.cleaned_data


class BoardForm(KanbanForm):
    """Criação e edição de board"""

    title = forms.CharField(min_length=1, max_length=100)
    description = forms.CharField(max_length=500, required=False, empty_value=None)
    settings = forms.JSONField(required=False)

    def clean_title(self):
        return sanitizar_texto(self.cleaned_data['title'])

    def clean_description(self):
        return sanitizar_texto(self.cleaned_data.get('description'))

    def clean_settings(self):
        settings = self.cleaned_data.get('settings')
        if settings in (None, ''):
            return {}
        if not isinstance(settings, dict):
            raise ValidationError('Configurações devem ser um objeto.')
        return settings


class DeleteBoardForm(KanbanForm):
    boardName = forms.CharField()


class ColumnForm(KanbanForm):
    title = forms.CharField(min_length=1, max_length=100)
    status = forms.CharField(min_length=1, max_length=50)
    wipLimit = forms.IntegerField(min_value=0, required=False)
    color = forms.RegexField(regex=HEX_COLOR, required=False, empty_value=None,
                             error_messages={'invalid': 'Cor deve estar no formato #rrggbb.'})


class ReorderColumnsForm(KanbanForm):
    columnIds = JSONListField(text_items=True)


class TaskForm(KanbanForm):
    """Criação e edição de tarefa"""

    title = forms.CharField(min_length=1, max_length=200)
    description = forms.CharField(max_length=5000, required=False, empty_value=None)
    status = forms.CharField(max_length=50, required=False, empty_value=None)
    priority = forms.ChoiceField(choices=[(p, p) for p in PRIORITY_CHOICES], required=False)
    assignee = forms.CharField(max_length=100, required=False, empty_value=None)
    dueDate = forms.CharField(max_length=40, required=False, empty_value=None)
    tags = JSONListField(required=False, max_items=10, item_max_length=50)
    estimatedHours = forms.FloatField(min_value=0, max_value=999, required=False)
    actualHours = forms.FloatField(min_value=0, max_value=999, required=False)
    attachments = JSONListField(required=False)

    def clean_dueDate(self):
        due = self.cleaned_data.get('dueDate')
        if not due:
            return due
        try:
            valida = parse_datetime(due) is not None or parse_date(due) is not None
        except ValueError:
            # Formato certo, data inexistente (ex.: 30 de fevereiro)
            valida = False
        if not valida:
            raise ValidationError('Data de entrega inválida.')
        return due

    def clean_tags(self):
        return [t.strip() for t in self.cleaned_data.get('tags') or []]


class MoveTaskForm(KanbanForm):
    newStatus = forms.CharField(max_length=50)
    newPosition = forms.IntegerField(required=False)


class CommentForm(KanbanForm):
    content = forms.CharField(min_length=1, max_length=5000)
    author = forms.CharField(min_length=1, max_length=100)


class EditCommentForm(KanbanForm):
    content = forms.CharField(min_length=1, max_length=5000)


class MemberForm(KanbanForm):
    """Membro do board ou do diretório global"""

    name = forms.CharField(min_length=1, max_length=100)
    email = forms.EmailField(max_length=254)
    role = forms.ChoiceField(choices=[(r, r) for r in ROLE_CHOICES], required=False)
    avatar = forms.URLField(required=False, empty_value=None)

    def clean_email(self):
        return self.cleaned_data['email'].strip().lower()


class IdentityTokenForm(KanbanForm):
    memberId = forms.CharField(max_length=100)
