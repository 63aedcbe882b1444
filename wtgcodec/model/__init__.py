"""Trigger file model classes."""

from wtgcodec.model.document import Category, Document, Trigger, Variable
from wtgcodec.model.functions import Function, Parameter
from wtgcodec.model.parts import SerializationContext

__all__ = ['Category', 'Document', 'Function', 'Parameter', 'SerializationContext', 'Trigger', 'Variable']
