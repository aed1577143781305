'''
General python utilities, which aren't specific to the hybridization objects.

Methods / Classes in this one shouldn't require non-standard imports.
'''

class HybridizeError(RuntimeError):
    'raised when a hybridization pass cannot be applied (bad parameters or malformed automaton)'

class Freezable():
    'a class where you can freeze the fields (prevent new fields from being created)'

    _frozen = False

    def freeze_attrs(self):
        'prevents any new attributes from being created in the object'
        self._frozen = True

    def __setattr__(self, key, value):
        if self._frozen and not hasattr(self, key):
            raise TypeError("{} does not contain attribute '{}' (object was frozen)".format(self, key))

        object.__setattr__(self, key, value)
