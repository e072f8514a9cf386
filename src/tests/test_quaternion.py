"""
===============================================================================
DQPOSE - Quaternion Kernel Test Suite
===============================================================================
Tests for the general Quat class: construction forms, Hamilton product,
conjugate, norm, inverse, log/exp/pow, Hamilton operator matrices, scalar
arithmetic, in-place operators, equality, scalar-field handling and text
rendering.

All floating-point comparisons use numpy.testing.assert_allclose with
explicit tolerances appropriate for double-precision arithmetic.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import pytest
from numpy.testing import assert_allclose

from dqpose.core import constants
from dqpose.core.config import numeric_config
from dqpose.core.errors import QuaternionError, SingularQuaternionError
from dqpose.core.quaternion import Quat
from dqpose.core.scalar import resolve_dtype


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def identity_quat():
    """Return the multiplicative identity (1, 0, 0, 0)."""
    return Quat(1.0)


@pytest.fixture
def quat_1234():
    """Return the general quaternion (1, 2, 3, 4)."""
    return Quat(1.0, 2.0, 3.0, 4.0)


@pytest.fixture
def random_quats():
    """Return a deterministic list of general quaternions."""
    rng = np.random.default_rng(42)
    return [Quat(rng.normal(size=4)) for _ in range(5)]


# =============================================================================
# Test: Construction
# =============================================================================

class TestConstruction:
    """Tests for the Quat construction forms."""

    def test_default_is_zero(self):
        """Quat() is the zero quaternion."""
        assert_allclose(Quat().components, [0.0, 0.0, 0.0, 0.0], atol=0)

    def test_partial_scalar_list(self):
        """Missing trailing components default to zero."""
        assert_allclose(Quat(5.0).components, [5.0, 0.0, 0.0, 0.0], atol=0)
        assert_allclose(Quat(1, 2).components, [1.0, 2.0, 0.0, 0.0], atol=0)

    def test_four_element_array(self):
        """A length-4 array is a full quaternion [w, x, y, z]."""
        q = Quat(np.array([1.0, 2.0, 3.0, 4.0]))
        assert_allclose(q.components, [1.0, 2.0, 3.0, 4.0], atol=0)

    def test_three_element_array(self):
        """A length-3 array is the vector part with w = 0."""
        q = Quat([1.0, 2.0, 3.0])
        assert_allclose(q.components, [0.0, 1.0, 2.0, 3.0], atol=0)

    def test_accessors(self, quat_1234):
        """w, x, y, z and vector expose the components."""
        assert quat_1234.w == 1.0
        assert quat_1234.x == 2.0
        assert quat_1234.y == 3.0
        assert quat_1234.z == 4.0
        assert_allclose(quat_1234.vector, [2.0, 3.0, 4.0], atol=0)

    def test_vrep_array_is_scalar_last(self, quat_1234):
        """vrep_array() orders the components [x, y, z, w]."""
        assert_allclose(quat_1234.vrep_array(), [2.0, 3.0, 4.0, 1.0], atol=0)

    def test_bad_array_shape(self):
        """Arrays of length other than 3 or 4 are rejected."""
        with pytest.raises(ValueError):
            Quat(np.zeros(5))
        with pytest.raises(ValueError):
            Quat(np.zeros((2, 2)))

    def test_too_many_scalars(self):
        """More than four scalars is a TypeError."""
        with pytest.raises(TypeError):
            Quat(1, 2, 3, 4, 5)

    def test_non_scalar_component(self):
        """Components must be real scalars."""
        with pytest.raises(TypeError):
            Quat(1.0, "2")

    def test_copy_is_independent(self, quat_1234):
        """copied() produces a value that can be mutated independently."""
        c = quat_1234.copied()
        c += Quat(1.0)
        assert_allclose(quat_1234.components, [1.0, 2.0, 3.0, 4.0], atol=0)
        assert_allclose(c.components, [2.0, 2.0, 3.0, 4.0], atol=0)

    def test_components_returns_copy(self, quat_1234):
        """Mutating the returned array leaves the quaternion unchanged."""
        arr = quat_1234.array()
        arr[0] = 100.0
        assert quat_1234.w == 1.0


# =============================================================================
# Test: Hamilton product
# =============================================================================

class TestHamiltonProduct:
    """Tests for quaternion multiplication."""

    def test_identity_left(self, identity_quat):
        """(1,0,0,0) * (0,1,2,3) == (0,1,2,3)."""
        result = identity_quat * Quat(0, 1, 2, 3)
        assert result == Quat(0, 1, 2, 3)

    def test_identity_right(self, identity_quat, quat_1234):
        """q * 1 == q."""
        assert_allclose((quat_1234 * identity_quat).components,
                        quat_1234.components, atol=1e-15)

    @pytest.mark.parametrize("a,b,expected", [
        ((0, 1, 0, 0), (0, 0, 1, 0), (0, 0, 0, 1)),     # i j = k
        ((0, 0, 1, 0), (0, 0, 0, 1), (0, 1, 0, 0)),     # j k = i
        ((0, 0, 0, 1), (0, 1, 0, 0), (0, 0, 1, 0)),     # k i = j
        ((0, 0, 1, 0), (0, 1, 0, 0), (0, 0, 0, -1)),    # j i = -k
        ((0, 1, 0, 0), (0, 1, 0, 0), (-1, 0, 0, 0)),    # i i = -1
    ])
    def test_basis_products(self, a, b, expected):
        """Products of the basis units follow i^2 = j^2 = k^2 = ijk = -1."""
        assert_allclose((Quat(*a) * Quat(*b)).components, expected, atol=1e-15)

    def test_known_product(self):
        """(1,2,3,4) * (5,6,7,8) == (-60, 12, 30, 24)."""
        result = Quat(1, 2, 3, 4) * Quat(5, 6, 7, 8)
        assert_allclose(result.components, [-60.0, 12.0, 30.0, 24.0], atol=1e-12)

    def test_non_commutative(self):
        """In general a * b != b * a."""
        a, b = Quat(1, 2, 3, 4), Quat(5, 6, 7, 8)
        assert a * b != b * a

    def test_associative(self, random_quats):
        """(a * b) * c == a * (b * c)."""
        a, b, c = random_quats[:3]
        assert_allclose(((a * b) * c).components, (a * (b * c)).components, atol=1e-12)

    def test_multiply_method_matches_operator(self, random_quats):
        """multiply() and * agree."""
        a, b = random_quats[:2]
        assert a.multiply(b) == a * b


# =============================================================================
# Test: Conjugate, norm, inverse
# =============================================================================

class TestConjugateNormInverse:
    """Tests for conjugate, norm and inverse."""

    def test_conjugate(self, quat_1234):
        """conj() flips the sign of the vector part."""
        assert_allclose(quat_1234.conj().components, [1.0, -2.0, -3.0, -4.0], atol=0)
        assert quat_1234.conjugate() == quat_1234.conj()

    def test_norm(self, quat_1234):
        """|(1,2,3,4)| == sqrt(30)."""
        assert_allclose(quat_1234.norm(), np.sqrt(30.0), rtol=1e-15)

    def test_dot(self, quat_1234):
        """dot() is the four-dimensional inner product."""
        assert_allclose(quat_1234.dot(Quat(5, 6, 7, 8)), 70.0, rtol=1e-15)

    def test_norm_of_product(self, random_quats):
        """|a * b| == |a| |b|."""
        a, b = random_quats[:2]
        assert_allclose((a * b).norm(), a.norm() * b.norm(), rtol=1e-12)

    def test_multiply_inverse(self, random_quats):
        """q * inv(q) == identity for any nonzero q."""
        for q in random_quats:
            assert_allclose((q * q.inv()).components, [1.0, 0.0, 0.0, 0.0], atol=1e-12)
            assert_allclose((q.inverse() * q).components, [1.0, 0.0, 0.0, 0.0], atol=1e-12)

    def test_norm_of_tiny_components(self):
        """Components whose squares underflow still give a nonzero norm."""
        q = Quat(1e-25, 0, 0, 0, dtype=np.float32)
        assert q.norm() > 0
        assert_allclose(q.norm(), 1e-25, rtol=1e-6)
        assert_allclose(Quat(3e-200, 4e-200, 0, 0).norm(), 5e-200, rtol=1e-14)

    def test_norm_of_huge_components(self):
        """Components whose squares overflow still give a finite norm."""
        q = Quat(1e30, 1e30, 0, 0, dtype=np.float32)
        assert np.isfinite(q.norm())
        assert_allclose(q.norm(), np.sqrt(2.0) * 1e30, rtol=1e-6)
        assert_allclose(Quat(3e200, 0, 4e200, 0).norm(), 5e200, rtol=1e-14)

    def test_inverse_of_tiny_quaternion(self):
        """A tiny but nonzero quaternion is invertible."""
        q = Quat(0, 1e-25, 0, 0, dtype=np.float32)
        assert_allclose(q.inv().components, [0, -1e25, 0, 0], rtol=1e-6)
        assert_allclose((q * q.inv()).components, [1, 0, 0, 0], atol=1e-6)

    def test_inverse_of_zero_raises(self):
        """Inverting the zero quaternion raises SingularQuaternionError."""
        with pytest.raises(SingularQuaternionError):
            Quat().inv()

    def test_singular_error_hierarchy(self):
        """SingularQuaternionError is both a QuaternionError and ZeroDivisionError."""
        with pytest.raises(ZeroDivisionError):
            Quat().inv()
        with pytest.raises(QuaternionError):
            Quat().inv()


# =============================================================================
# Test: Logarithm, exponential, power
# =============================================================================

class TestLogExpPow:
    """Tests for the transcendental functions."""

    def test_exp_log_round_trip(self, random_quats):
        """exp(log(q)) == q for q with a nonzero vector part."""
        for q in random_quats:
            assert_allclose(q.log().exp().components, q.components, atol=1e-12)

    def test_log_of_positive_real(self):
        """log((e, 0, 0, 0)) == (1, 0, 0, 0)."""
        assert_allclose(Quat(np.e).log().components, [1.0, 0.0, 0.0, 0.0], atol=1e-15)

    def test_log_of_negative_real(self):
        """A negative real quaternion takes the principal value (ln|w|, pi, 0, 0)."""
        result = Quat(-2.0).log()
        assert_allclose(result.components, [np.log(2.0), np.pi, 0.0, 0.0], atol=1e-15)
        assert_allclose(result.exp().components, [-2.0, 0.0, 0.0, 0.0], atol=1e-12)

    def test_log_of_zero_raises(self):
        """The logarithm of zero is undefined."""
        with pytest.raises(SingularQuaternionError):
            Quat().log()

    def test_log_of_unit_quaternion_is_pure(self):
        """log of a unit quaternion has zero scalar part and half-angle length."""
        angle = 0.8
        q = Quat(np.cos(angle / 2), 0.0, np.sin(angle / 2), 0.0)
        assert_allclose(q.log().components, [0.0, 0.0, angle / 2, 0.0], atol=1e-15)

    def test_exp_of_real(self):
        """exp((w, 0, 0, 0)) == (e^w, 0, 0, 0)."""
        assert_allclose(Quat(2.0).exp().components, [np.exp(2.0), 0.0, 0.0, 0.0], rtol=1e-15)

    def test_exp_of_pure(self):
        """exp((0, pi/2, 0, 0)) == (0, 1, 0, 0)."""
        assert_allclose(Quat(0.0, np.pi / 2).exp().components,
                        [0.0, 1.0, 0.0, 0.0], atol=1e-15)

    def test_pow_two_is_square(self, random_quats):
        """q^2 == q * q."""
        for q in random_quats:
            assert_allclose(q.pow(2).components, (q * q).components, atol=1e-10)

    def test_pow_half_squared(self, quat_1234):
        """(q^0.5)^2 == q."""
        root = quat_1234.pow(0.5)
        assert_allclose((root * root).components, quat_1234.components, atol=1e-12)


# =============================================================================
# Test: Hamilton operators
# =============================================================================

class TestHamiltonOperators:
    """Tests for the 4x4 left/right Hamilton operator matrices."""

    def test_hamiplus(self, random_quats):
        """(a * b).array() == a.hamiplus() @ b.array()."""
        a, b = random_quats[:2]
        assert_allclose((a * b).array(), a.hamiplus() @ b.array(), atol=1e-12)

    def test_haminus(self, random_quats):
        """(a * b).array() == b.haminus() @ a.array()."""
        a, b = random_quats[:2]
        assert_allclose((a * b).array(), b.haminus() @ a.array(), atol=1e-12)

    def test_hamiplus_of_conjugate_is_transpose(self, quat_1234):
        """H+(conj(q)) == H+(q)^T."""
        assert_allclose(quat_1234.conj().hamiplus(), quat_1234.hamiplus().T, atol=0)

    def test_operators_commute(self, random_quats):
        """Left and right multiplication commute: H+(a) H-(b) == H-(b) H+(a)."""
        a, b = random_quats[:2]
        assert_allclose(a.hamiplus() @ b.haminus(), b.haminus() @ a.hamiplus(), atol=1e-12)


# =============================================================================
# Test: Scalar arithmetic and addition
# =============================================================================

class TestArithmetic:
    """Tests for component-wise arithmetic."""

    def test_add_sub(self, quat_1234):
        """+ and - act component-wise."""
        other = Quat(5, 6, 7, 8)
        assert_allclose((quat_1234 + other).components, [6, 8, 10, 12], atol=0)
        assert_allclose((other - quat_1234).components, [4, 4, 4, 4], atol=0)

    def test_scalar_multiply_both_sides(self, quat_1234):
        """q * s == s * q == component-wise scaling."""
        assert_allclose((quat_1234 * 2).components, [2, 4, 6, 8], atol=0)
        assert_allclose((2 * quat_1234).components, [2, 4, 6, 8], atol=0)

    def test_numpy_scalar_on_left(self, quat_1234):
        """A numpy scalar on the left still gives a Quat."""
        result = np.float64(2.0) * quat_1234
        assert isinstance(result, Quat)
        assert_allclose(result.components, [2, 4, 6, 8], atol=0)

    def test_divide_and_negate(self, quat_1234):
        """q / s and -q act component-wise."""
        assert_allclose((quat_1234 / 2).components, [0.5, 1.0, 1.5, 2.0], atol=0)
        assert_allclose((-quat_1234).components, [-1, -2, -3, -4], atol=0)

    def test_divide_by_zero(self, quat_1234):
        """Division by a zero scalar raises ZeroDivisionError."""
        with pytest.raises(ZeroDivisionError):
            quat_1234 / 0

    def test_unsupported_operand(self, quat_1234):
        """Adding a non-quaternion is a TypeError."""
        with pytest.raises(TypeError):
            quat_1234 + 1.0
        with pytest.raises(TypeError):
            quat_1234 * "a"


# =============================================================================
# Test: In-place operators
# =============================================================================

class TestInPlace:
    """Tests for in-place mutation of a general Quat."""

    def test_iadd_isub(self, quat_1234):
        """+= and -= mutate the receiver."""
        q = quat_1234
        q += Quat(1, 1, 1, 1)
        assert_allclose(q.components, [2, 3, 4, 5], atol=0)
        q -= Quat(2, 0, 0, 0)
        assert_allclose(q.components, [0, 3, 4, 5], atol=0)

    def test_imul_quaternion(self, quat_1234):
        """*= with a quaternion is the Hamilton product."""
        q = quat_1234.copied()
        q *= Quat(5, 6, 7, 8)
        assert_allclose(q.components, [-60.0, 12.0, 30.0, 24.0], atol=1e-12)

    def test_imul_scalar(self, quat_1234):
        """*= with a scalar scales the receiver."""
        q = quat_1234
        q *= 3
        assert_allclose(q.components, [3, 6, 9, 12], atol=0)

    def test_in_place_does_not_touch_operand(self, quat_1234):
        """Only the receiver is mutated."""
        other = Quat(5, 6, 7, 8)
        quat_1234 *= other
        assert_allclose(other.components, [5, 6, 7, 8], atol=0)

    def test_assign(self, quat_1234):
        """assign() overwrites the components and returns the receiver."""
        q = Quat()
        assert q.assign(quat_1234) is q
        assert q == quat_1234

    def test_normalize_in_place(self):
        """normalize() divides by the norm and returns self."""
        q = Quat(0, 3, 0, 4)
        assert q.normalize() is q
        assert_allclose(q.components, [0.0, 0.6, 0.0, 0.8], atol=1e-15)

    def test_purify_in_place(self, quat_1234):
        """purify() zeroes the scalar part."""
        quat_1234.purify()
        assert_allclose(quat_1234.components, [0, 2, 3, 4], atol=0)


# =============================================================================
# Test: Equality
# =============================================================================

class TestEquality:
    """Tests for tolerance-based equality."""

    def test_equal_within_tolerance(self):
        """Differences below the comparison tolerance compare equal."""
        assert Quat(1.0) == Quat(1.0 + 1e-12)

    def test_not_equal_outside_tolerance(self):
        """Differences above the tolerance compare unequal."""
        assert Quat(1.0) != Quat(1.001)

    def test_isclose_explicit_tolerance(self):
        """isclose() takes an explicit absolute tolerance."""
        assert Quat(1.0).isclose(Quat(1.001), atol=1e-2)
        assert not Quat(1.0).isclose(Quat(1.001), atol=1e-4)

    def test_compare_with_non_quaternion(self):
        """Comparing with another type is simply unequal."""
        assert Quat(1.0) != 1.0
        assert not Quat(1.0).isclose(1.0)

    def test_unhashable(self):
        """Quaternions are mutable values and cannot be hashed."""
        with pytest.raises(TypeError):
            hash(Quat(1.0))


# =============================================================================
# Test: Scalar field (dtype)
# =============================================================================

class TestScalarField:
    """Tests for dtype selection and explicit conversion."""

    def test_default_dtype(self, quat_1234):
        """Values built from plain numbers use float64 by default."""
        assert quat_1234.dtype == np.float64

    @pytest.mark.parametrize("dtype", [np.float16, np.float32, np.float64, np.longdouble])
    def test_explicit_dtype(self, dtype):
        """Every numpy floating type can serve as the scalar field."""
        q = Quat(1, 2, 3, 4, dtype=dtype)
        assert q.dtype == np.dtype(dtype)
        assert q.array().dtype == np.dtype(dtype)
        assert (q * q).dtype == np.dtype(dtype)

    def test_non_floating_dtype_rejected(self):
        """Integer scalar fields are rejected."""
        with pytest.raises(TypeError):
            Quat(1, 2, 3, 4, dtype=np.int32)

    @pytest.mark.parametrize("dtype", [np.complex128, np.bool_, "U4"])
    def test_unsupported_dtype_rejected(self, dtype):
        """Only the dtypes listed in SUPPORTED_DTYPES are accepted."""
        assert np.dtype(dtype) not in [np.dtype(d) for d in constants.SUPPORTED_DTYPES]
        with pytest.raises(TypeError):
            Quat(1, 2, 3, 4, dtype=dtype)

    def test_supported_dtypes_accepted(self):
        """Every dtype in SUPPORTED_DTYPES resolves to itself."""
        for dtype in constants.SUPPORTED_DTYPES:
            assert resolve_dtype(dtype) == np.dtype(dtype)

    def test_copy_keeps_source_dtype(self):
        """Copy construction keeps the source dtype unless overridden."""
        q32 = Quat(1, 2, 3, 4, dtype=np.float32)
        assert Quat(q32).dtype == np.float32
        assert Quat(q32, dtype=np.float64).dtype == np.float64

    def test_astype(self, quat_1234):
        """astype() converts explicitly to another scalar field."""
        q32 = quat_1234.astype(np.float32)
        assert isinstance(q32, Quat)
        assert q32.dtype == np.float32
        assert_allclose(q32.components, [1, 2, 3, 4], atol=0)
        assert quat_1234.dtype == np.float64

    def test_mixed_dtype_uses_left_operand(self):
        """Cross-dtype arithmetic casts the right operand into the left's dtype."""
        q32 = Quat(1, 2, 3, 4, dtype=np.float32)
        q64 = Quat(5, 6, 7, 8)
        assert (q32 * q64).dtype == np.float32
        assert (q64 + q32).dtype == np.float64

    def test_configured_default_dtype(self):
        """The configured default dtype applies to values built from numbers."""
        with numeric_config(dtype="float32"):
            assert Quat(1.0).dtype == np.float32
        assert Quat(1.0).dtype == np.float64


# =============================================================================
# Test: Text rendering
# =============================================================================

class TestText:
    """Tests for str() and repr()."""

    def test_str_default_precision(self):
        """str() renders 'w + x î + y ĵ + z k̂' with 12 fractional digits."""
        assert str(Quat(1, 2, 3, 4)) == (
            "1.000000000000 + 2.000000000000 î + "
            "3.000000000000 ĵ + 4.000000000000 k̂"
        )

    def test_str_configured_precision(self):
        """print_precision controls the number of fractional digits."""
        with numeric_config(print_precision=2):
            assert str(Quat(1, -2, 3, 4)) == "1.00 + -2.00 î + 3.00 ĵ + 4.00 k̂"

    def test_repr_names_class_and_dtype(self):
        """repr() shows the class name and dtype."""
        text = repr(Quat(1, 2, 3, 4, dtype=np.float32))
        assert text.startswith("Quat(")
        assert "dtype=float32" in text
