from .form import Form, FormField, FieldKind
from .response import FormResponse, ResponseAnswer
